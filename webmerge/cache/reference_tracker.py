# -*- coding: utf-8 -*-
"""Location: ./webmerge/cache/reference_tracker.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Stylesheet to image reference tracking.

A stylesheet's validation token is built from its own size and modification
time, so an image it embeds via ``url(...)`` could change without the
stylesheet token noticing. The tracker remembers which images each
stylesheet references and, whenever an image turns out to be newer than the
stylesheet, touches the stylesheet to "now". From then on the stylesheet's
own timestamp covers its images and Last-Modified / ETag logic needs no
special cases.

The map is a soft cache shared by all requests in the process. It is never
torn down; entries for images that disappear from disk are dropped the next
time they are checked. Updates for one stylesheet are serialized by a lock
dedicated to that stylesheet, different stylesheets never contend.

Examples:
    >>> from unittest.mock import Mock
    >>> files = Mock()
    >>> files.is_file.return_value = True
    >>> files.last_modified.side_effect = lambda p: {"/w/site.css": 1000, "/w/bg.png": 2000}[p]
    >>> tracker = ReferenceTracker(files, clock=lambda: 5000)
    >>> tracker.record("/w/site.css", "/w/bg.png")
    True
    >>> files.set_last_modified.assert_called_once_with("/w/site.css", 5000)
    >>> tracker.references_of("/w/site.css")
    ('/w/bg.png',)
"""

# Standard
import threading
import time
from typing import Callable, Optional

# First-Party
from webmerge.services.logging_service import LoggingService
from webmerge.storage import FileMetadataProvider, LocalFileMetadataProvider

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


def _now_millis() -> int:
    """Current wall clock time in epoch milliseconds.

    Returns:
        int: Milliseconds since the epoch.
    """
    return int(time.time() * 1000)


class ReferenceTracker:
    """Shared, lockable map from stylesheet paths to the image paths they reference.

    Attributes:
        files: Metadata provider used to stat and touch files.
        _references: Stylesheet path to ordered unique image paths.
        _locks: One lock per stylesheet path.
        _registry_lock: Guards creation of per-stylesheet locks.
    """

    def __init__(self, files: Optional[FileMetadataProvider] = None, clock: Callable[[], int] = _now_millis):
        """Initialize an empty tracker.

        Args:
            files: Metadata provider; defaults to the local filesystem.
            clock: Returns "now" in epoch milliseconds, used when touching stylesheets.
        """
        self.files = files if files is not None else LocalFileMetadataProvider()
        self._clock = clock
        self._references: dict[str, list[str]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, css_path: str) -> threading.Lock:
        """Return the lock dedicated to ``css_path``, creating it once.

        Args:
            css_path: Stylesheet path.

        Returns:
            threading.Lock: The per-stylesheet lock.
        """
        lock = self._locks.get(css_path)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.setdefault(css_path, threading.Lock())
        return lock

    def record(self, css_path: str, image_path: Optional[str]) -> bool:
        """Register ``image_path`` as referenced by ``css_path`` and propagate freshness.

        Images that are not regular files are forgotten instead. When the image
        is newer than the stylesheet, the stylesheet is touched to the current
        time.

        Args:
            css_path: Real path of the stylesheet.
            image_path: Real path of the referenced image.

        Returns:
            True if the stylesheet was touched, telling the caller it may stop
            checking further references of this stylesheet.

        Examples:
            >>> from unittest.mock import Mock
            >>> files = Mock()
            >>> files.is_file.return_value = False
            >>> tracker = ReferenceTracker(files)
            >>> tracker.record("/w/site.css", "/w/gone.png")
            False
            >>> tracker.record("/w/site.css", None)
            False
            >>> tracker.has_references("/w/site.css")
            False
        """
        if image_path is None:
            return False

        with self._lock_for(css_path):
            references = self._references.get(css_path)
            if not self.files.is_file(image_path):
                if references is not None and image_path in references:
                    references.remove(image_path)
                    logger.debug(f"Dropped vanished reference {image_path} from {css_path}")
                return False

            if references is None:
                references = self._references[css_path] = []
            if image_path not in references:
                references.append(image_path)

            if self.files.last_modified(css_path) < self.files.last_modified(image_path):
                try:
                    self.files.set_last_modified(css_path, self._clock())
                except OSError as e:
                    logger.warning(f"Failed to touch {css_path} after {image_path} changed: {e}")
                    return False
                logger.debug(f"Touched {css_path}: referenced image {image_path} is newer")
                return True
        return False

    def references_of(self, css_path: str) -> tuple[str, ...]:
        """Return the images currently known for ``css_path``.

        Args:
            css_path: Real path of the stylesheet.

        Returns:
            Snapshot of referenced image paths, empty when unknown.

        Examples:
            >>> ReferenceTracker().references_of("/w/unknown.css")
            ()
        """
        with self._lock_for(css_path):
            return tuple(self._references.get(css_path, ()))

    def has_references(self, css_path: str) -> bool:
        """Whether a previous scan already registered references for ``css_path``.

        Args:
            css_path: Real path of the stylesheet.

        Returns:
            True if an entry exists, even if it has since emptied.
        """
        return css_path in self._references

    def forget(self, css_path: str) -> None:
        """Drop the entry for ``css_path`` so the next validation rescans it.

        Args:
            css_path: Real path of the stylesheet.
        """
        with self._lock_for(css_path):
            self._references.pop(css_path, None)

    def clear(self) -> None:
        """Drop every entry.

        Per-stylesheet locks are kept; a writer may still hold one.
        """
        with self._registry_lock:
            self._references.clear()

    def __len__(self) -> int:
        """Number of stylesheets with an entry.

        Returns:
            int: Entry count.
        """
        return len(self._references)
