# -*- coding: utf-8 -*-
"""Location: ./webmerge/services/logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Logging Service Implementation.
Thin wrapper over the standard logging module so every webmerge module gets
its logger the same way and the root handler is configured exactly once from
settings.

Examples:
    >>> from webmerge.services.logging_service import LoggingService
    >>> service = LoggingService()
    >>> service.get_logger("webmerge.test").name
    'webmerge.test'
"""

# Standard
import logging
import threading
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configure_lock = threading.Lock()
_configured = False


class LoggingService:
    """Hands out named loggers and configures the webmerge handler once."""

    def __init__(self) -> None:
        """Initialize the service with an empty logger registry."""
        self._loggers: dict[str, logging.Logger] = {}

    def configure(self, level: Optional[str] = None) -> None:
        """Attach a stream handler to the ``webmerge`` logger.

        Repeated calls only adjust the level.

        Args:
            level: Level name; defaults to ``settings.log_level``.

        Examples:
            >>> LoggingService().configure("WARNING")
            >>> logging.getLogger("webmerge").level == logging.WARNING
            True
        """
        global _configured  # pylint: disable=global-statement
        if level is None:
            # First-Party
            from webmerge.config import settings  # pylint: disable=import-outside-toplevel

            level = settings.log_level

        root = logging.getLogger("webmerge")
        with _configure_lock:
            if not _configured:
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter(LOG_FORMAT))
                root.addHandler(handler)
                _configured = True
            root.setLevel(getattr(logging, level.upper(), logging.INFO))

    def get_logger(self, name: str) -> logging.Logger:
        """Return the logger for ``name``, creating it on first use.

        Args:
            name: Logger name, usually ``__name__``.

        Returns:
            logging.Logger: The named logger.
        """
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]
