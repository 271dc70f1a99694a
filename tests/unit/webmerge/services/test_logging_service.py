# -*- coding: utf-8 -*-
"""Location: ./tests/unit/webmerge/services/test_logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tests for LoggingService.
"""

# Standard
import logging

# First-Party
from webmerge.services.logging_service import LoggingService


def test_get_logger_returns_same_instance():
    service = LoggingService()
    assert service.get_logger("webmerge.a") is service.get_logger("webmerge.a")
    assert service.get_logger("webmerge.a") is logging.getLogger("webmerge.a")


def test_configure_attaches_one_handler():
    package_logger = logging.getLogger("webmerge")
    LoggingService().configure("DEBUG")
    handlers = list(package_logger.handlers)

    LoggingService().configure("ERROR")

    assert package_logger.handlers == handlers
    assert package_logger.level == logging.ERROR


def test_configure_defaults_to_settings(monkeypatch):
    # First-Party
    from webmerge.config import settings

    monkeypatch.setattr(settings, "log_level", "WARNING")
    LoggingService().configure()
    assert logging.getLogger("webmerge").level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    LoggingService().configure("chatty")
    assert logging.getLogger("webmerge").level == logging.INFO
