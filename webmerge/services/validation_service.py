# -*- coding: utf-8 -*-
"""Location: ./webmerge/services/validation_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Validation Service Implementation.
This module computes validation tokens (ETags) and modification times for
lists of static resources and answers conditional request checks.

Token format:
- per resource: MD5 hex of ``"::<lastModifiedMillis>#<size>"``
- per request: the per-resource tokens concatenated, MD5 hex-digested again
  only when more than two resources were requested. One and two resource
  requests keep the raw concatenation.

Stylesheets get extra treatment: images referenced through ``url(...)`` are
tracked by a shared :class:`~webmerge.cache.reference_tracker.ReferenceTracker`
and a newer image touches the stylesheet before its token is computed.

Nothing here raises for missing files, unreadable stylesheets or bad dates.
Unresolvable resources are skipped and undeterminable tokens are treated as
"modified".

Examples:
    >>> from unittest.mock import Mock
    >>> resolver = Mock()
    >>> resolver.real_path.return_value = None
    >>> engine = ValidationEngine(resolver, files=Mock())
    >>> engine.etag_of("/js/missing.js") is None
    True
    >>> engine.combined_etag(["/js/missing.js"]) is None
    True
    >>> engine.is_modified(["/js/missing.js"], "abc")
    True
"""

# Standard
from functools import lru_cache
import hashlib
import re
from typing import Iterable, Optional, Sequence

# First-Party
from webmerge.cache.reference_tracker import ReferenceTracker
from webmerge.config import settings
from webmerge.services.logging_service import LoggingService
from webmerge.storage import DocumentRootResolver, FileMetadataProvider, LocalFileMetadataProvider, PathResolver
from webmerge.utils.http_dates import format_header_date, parse_header_date
from webmerge.utils.path_algebra import is_protocol_relative, is_protocol_url, parent_path, resolve
from webmerge.utils.resource_list import EXT_CSS

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

# url(...) references inside stylesheets, quoted or not
CSS_IMG_URL_PATTERN = re.compile(r"""url\s*\(\s*['"]?([^'"()]*)['"]?\s*\)""", re.IGNORECASE)


def hex_digest(data: bytes) -> str:
    """MD5 hex digest of ``data``.

    On interpreters where MD5 is unavailable (FIPS builds) the raw bytes are
    hex-encoded instead.

    Args:
        data: Bytes to digest.

    Returns:
        Lower-case hex string.

    Examples:
        >>> hex_digest(b"")
        'd41d8cd98f00b204e9800998ecf8427e'
    """
    try:
        digest = hashlib.md5(data, usedforsecurity=False).digest()
    except ValueError as e:
        logger.warning(f"Unable to use MD5 for digesting: {e}")
        digest = data
    return digest.hex()


def _strip_query(reference: str) -> str:
    """Remove query string and fragment from a stylesheet reference.

    Args:
        reference: Raw ``url(...)`` argument.

    Returns:
        The path part.

    Examples:
        >>> _strip_query("fonts/icons.woff?v=4.7#iefix")
        'fonts/icons.woff'
    """
    for marker in ("?", "#"):
        cut = reference.find(marker)
        if cut >= 0:
            reference = reference[:cut]
    return reference


class ValidationEngine:
    """Computes ETags and Last-Modified values for resource lists.

    Attributes:
        resolver: Maps logical resource paths to real paths.
        files: File metadata provider.
        tracker: Shared stylesheet to image reference map.
        short_circuit_scan: Stop checking a stylesheet's references at the first touch.
        gzip_suffix: Suffix compression layers append to ETags.
    """

    def __init__(
        self,
        resolver: PathResolver,
        files: Optional[FileMetadataProvider] = None,
        tracker: Optional[ReferenceTracker] = None,
        short_circuit_scan: bool = True,
        gzip_suffix: str = "-gzip",
    ):
        """Initialize the engine.

        Args:
            resolver: Maps logical resource paths to real paths.
            files: File metadata provider; defaults to the local filesystem.
            tracker: Shared reference tracker; a private one is created when omitted.
            short_circuit_scan: Stop checking a stylesheet's references at the first touch.
            gzip_suffix: Suffix stripped from request ETags before comparison.
        """
        self.resolver = resolver
        self.files = files if files is not None else LocalFileMetadataProvider()
        self.tracker = tracker if tracker is not None else ReferenceTracker(self.files)
        self.short_circuit_scan = short_circuit_scan
        self.gzip_suffix = gzip_suffix

    def _real_paths(self, resources: Iterable[str]) -> Iterable[str]:
        """Yield real paths for the resources that resolve.

        Args:
            resources: Logical resource paths.

        Yields:
            str: Real path of each resolvable resource.
        """
        for resource in resources:
            real_path = self.resolver.real_path(resource)
            if real_path is None:
                logger.debug(f"Skipping unresolvable resource {resource}")
                continue
            yield real_path

    def is_any_modified_since(self, resources: Iterable[str], since: int) -> bool:
        """Whether any resource was modified after ``since``.

        Args:
            resources: Logical resource paths.
            since: Epoch milliseconds, e.g. a parsed ``If-Modified-Since``.

        Returns:
            True on the first resource newer than ``since``; False otherwise,
            including for an empty list.
        """
        for real_path in self._real_paths(resources):
            if self.files.last_modified(real_path) > since:
                return True
        return False

    def last_modified_of(self, resources: Iterable[str]) -> int:
        """Latest modification time across the resources.

        Args:
            resources: Logical resource paths.

        Returns:
            Maximum epoch milliseconds, 0 if nothing resolves.
        """
        last_modified = 0
        for real_path in self._real_paths(resources):
            last_modified = max(last_modified, self.files.last_modified(real_path))
        return last_modified

    def _resolve_reference(self, css_path: str, reference: str) -> Optional[str]:
        """Turn a ``url(...)`` argument into a real image path.

        References are resolved in logical space and mapped through the
        resolver, so they are held to the same document root as resources.

        Args:
            css_path: Logical path of the stylesheet containing the reference.
            reference: Raw reference text.

        Returns:
            Real path of the image, or None for external, empty or unmappable references.
        """
        reference = _strip_query(reference.strip())
        if not reference or is_protocol_url(reference) or is_protocol_relative(reference):
            return None
        return self.resolver.real_path(resolve(parent_path(css_path), reference))

    def _scan_stylesheet(self, css_path: str, css_real_path: str) -> None:
        """Read a stylesheet and register every image it references.

        Read failures end the scan quietly; whatever was registered so far stays.

        Args:
            css_path: Logical path of the stylesheet.
            css_real_path: Real path of the stylesheet.
        """
        try:
            for line in self.files.read_lines(css_real_path):
                for match in CSS_IMG_URL_PATTERN.finditer(line):
                    image_path = self._resolve_reference(css_path, match.group(1))
                    if image_path is None:
                        continue
                    if self.tracker.record(css_real_path, image_path) and self.short_circuit_scan:
                        return
        except OSError as e:
            logger.warning(f"Failed to read/touch {css_real_path}: {e}")

    def _refresh_stylesheet(self, css_path: str, css_real_path: str) -> None:
        """Bring a stylesheet's timestamp up to date with its images.

        Known stylesheets only have their cached references re-checked; unknown
        ones are scanned in full.

        Args:
            css_path: Logical path of the stylesheet.
            css_real_path: Real path of the stylesheet.
        """
        if not self.tracker.has_references(css_real_path):
            self._scan_stylesheet(css_path, css_real_path)
            return
        for image_path in self.tracker.references_of(css_real_path):
            if self.tracker.record(css_real_path, image_path) and self.short_circuit_scan:
                return

    def etag_of(self, resource: str) -> Optional[str]:
        """Validation token for a single resource.

        Args:
            resource: Logical resource path.

        Returns:
            Hex token, or None if the resource is not an existing regular file.
        """
        real_path = self.resolver.real_path(resource)
        if real_path is None or not self.files.is_file(real_path):
            return None

        if real_path.endswith(EXT_CSS):
            self._refresh_stylesheet(resource, real_path)

        material = ":"
        if self.files.exists(real_path):
            material += f":{self.files.last_modified(real_path)}#{self.files.size(real_path)}"
        return hex_digest(material.encode())

    def combined_etag(self, resources: Sequence[str]) -> Optional[str]:
        """Validation token for a whole resource list.

        Args:
            resources: Logical resource paths in merge order.

        Returns:
            Concatenated per-resource tokens, digested when more than two
            resources were requested; None if no resource produced a token.
        """
        material = "".join(self.etag_of(resource) or "" for resource in resources)
        if not material:
            return None
        return hex_digest(material.encode()) if len(resources) > 2 else material

    def is_modified(self, resources: Sequence[str], request_etag: Optional[str], actual_etag: Optional[str] = None) -> bool:
        """Compare a client's ETag with the current one.

        Args:
            resources: Logical resource paths.
            request_etag: ETag from ``If-None-Match``.
            actual_etag: Current ETag, computed from ``resources`` when omitted.

        Returns:
            False only when both tags are known and equal.
        """
        if actual_etag is None and request_etag is not None:
            actual_etag = self.combined_etag(resources)
        if request_etag is not None and actual_etag is not None:
            if self.gzip_suffix:
                request_etag = request_etag.replace(self.gzip_suffix, "")
            return request_etag != actual_etag
        return True

    @staticmethod
    def parse_header_date(value: Optional[str]) -> Optional[int]:
        """Parse an HTTP header date.

        Args:
            value: Header value.

        Returns:
            Epoch milliseconds, or None if no known format matched.

        Examples:
            >>> ValidationEngine.parse_header_date("Thu, 01 Jan 1970 00:00:01 GMT")
            1000
        """
        return parse_header_date(value)

    @staticmethod
    def format_header_date(timestamp: int) -> str:
        """Format epoch milliseconds for an HTTP header.

        Args:
            timestamp: Epoch milliseconds.

        Returns:
            Date string in the preferred HTTP format.
        """
        return format_header_date(timestamp)


@lru_cache(maxsize=1)
def get_validation_engine() -> ValidationEngine:
    """Process-wide engine built from settings, sharing one reference tracker.

    Returns:
        ValidationEngine: The shared engine.
    """
    files = LocalFileMetadataProvider()
    logger.info(f"Initializing validation engine for document root {settings.document_root}")
    return ValidationEngine(
        DocumentRootResolver(settings.document_root),
        files=files,
        tracker=ReferenceTracker(files),
        short_circuit_scan=settings.short_circuit_reference_scan,
        gzip_suffix=settings.gzip_etag_suffix,
    )
