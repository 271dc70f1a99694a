# -*- coding: utf-8 -*-
"""Location: ./webmerge/storage.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Filesystem boundary for the validation engine.

The engine never touches the filesystem with logical (URL) paths. It asks a
``PathResolver`` for the real location of a resource and a
``FileMetadataProvider`` for everything it needs to know about that location.
Both are structural protocols so tests and embedding servers can supply their
own; ``DocumentRootResolver`` and ``LocalFileMetadataProvider`` are the
defaults backed by the local disk.

Timestamps are integer milliseconds since the epoch throughout.

Examples:
    >>> from webmerge.storage import DocumentRootResolver
    >>> resolver = DocumentRootResolver("/srv/www")
    >>> resolver.real_path("/js/a.js")
    '/srv/www/js/a.js'
    >>> resolver.real_path("/../etc/passwd") is None
    True
"""

# Standard
import os
from typing import Iterator, Optional, Protocol, runtime_checkable

# First-Party
from webmerge.services.logging_service import LoggingService

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


@runtime_checkable
class PathResolver(Protocol):
    """Maps a logical resource path to a real filesystem location."""

    def real_path(self, logical_path: str) -> Optional[str]:
        """Return the filesystem path for ``logical_path`` or None when it cannot be mapped."""


@runtime_checkable
class FileMetadataProvider(Protocol):
    """File facts the engine relies on. All paths are real filesystem paths."""

    def exists(self, path: str) -> bool:
        """Whether anything exists at ``path``."""

    def is_file(self, path: str) -> bool:
        """Whether ``path`` is an existing regular file."""

    def last_modified(self, path: str) -> int:
        """Modification time in epoch milliseconds, 0 when unknown."""

    def size(self, path: str) -> int:
        """Size in bytes, 0 when unknown."""

    def set_last_modified(self, path: str, timestamp: int) -> None:
        """Set the modification time to ``timestamp`` epoch milliseconds."""

    def read_lines(self, path: str) -> Iterator[str]:
        """Lazily yield the text lines of ``path`` without line terminators."""


class DocumentRootResolver:
    """Resolve logical paths beneath a document root directory.

    Paths that normalize to somewhere outside the root map to None. Existence
    is not checked here; that is the metadata provider's job.

    Examples:
        >>> r = DocumentRootResolver("/srv/www/")
        >>> r.real_path("/")
        '/srv/www'
        >>> r.real_path("css/./site.css")
        '/srv/www/css/site.css'
        >>> r.real_path(None) is None
        True
    """

    def __init__(self, root: str):
        """Initialize the resolver.

        Args:
            root: Document root directory.
        """
        self.root = os.path.abspath(root)

    def real_path(self, logical_path: Optional[str]) -> Optional[str]:
        """Map ``logical_path`` below the document root.

        Args:
            logical_path: Context-relative resource path.

        Returns:
            Absolute filesystem path, or None when the path is missing or escapes the root.
        """
        if logical_path is None:
            return None
        candidate = os.path.normpath(os.path.join(self.root, logical_path.lstrip("/")))
        if candidate != self.root and not candidate.startswith(self.root.rstrip(os.sep) + os.sep):
            logger.debug(f"Rejected path outside document root: {logical_path}")
            return None
        return candidate


class LocalFileMetadataProvider:
    """``FileMetadataProvider`` backed by ``os.stat`` and ``os.utime``."""

    encoding = "utf-8"

    def exists(self, path: str) -> bool:
        """Whether anything exists at ``path``.

        Args:
            path: Filesystem path.

        Returns:
            True if the path exists.
        """
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        """Whether ``path`` is a regular file.

        Args:
            path: Filesystem path.

        Returns:
            True for existing regular files.
        """
        return os.path.isfile(path)

    def last_modified(self, path: str) -> int:
        """Modification time in epoch milliseconds.

        Args:
            path: Filesystem path.

        Returns:
            Milliseconds since the epoch, 0 if the file cannot be stat'ed.
        """
        try:
            return os.stat(path).st_mtime_ns // 1_000_000
        except OSError:
            return 0

    def size(self, path: str) -> int:
        """File size in bytes.

        Args:
            path: Filesystem path.

        Returns:
            Size in bytes, 0 if the file cannot be stat'ed.
        """
        try:
            return os.stat(path).st_size
        except OSError:
            return 0

    def set_last_modified(self, path: str, timestamp: int) -> None:
        """Touch ``path`` to ``timestamp`` milliseconds, keeping its access time.

        Args:
            path: Filesystem path.
            timestamp: New modification time in epoch milliseconds.

        Raises:
            OSError: If the file cannot be updated.
        """
        st = os.stat(path)
        os.utime(path, ns=(st.st_atime_ns, timestamp * 1_000_000))

    def read_lines(self, path: str) -> Iterator[str]:
        """Yield lines of a text file without their terminators.

        Undecodable bytes are replaced rather than raising.

        Args:
            path: Filesystem path.

        Yields:
            str: One line at a time.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        with open(path, "r", encoding=self.encoding, errors="replace") as fh:
            for line in fh:
                yield line.rstrip("\r\n")
