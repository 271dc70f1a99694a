# -*- coding: utf-8 -*-
"""Location: ./webmerge/middleware/conditional_request.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Conditional Request Middleware.

Sits in front of the app that serves (merged) static resources and answers
conditional GET/HEAD requests from resource metadata alone:

- fingerprinted paths (``/js/a,b_wu_<etag>.js``) are rewritten to their plain
  form before the app sees them and get a far-future ``Cache-Control``
- ``If-None-Match`` is compared with the combined ETag of the requested resources
- otherwise ``If-Modified-Since`` is compared with their modification times
- unchanged resources get ``304 Not Modified`` without calling the app
- successful responses are decorated with ``ETag`` and ``Last-Modified``

Requests for anything but ``.js``, ``.json`` and ``.css`` pass straight through,
fingerprint or not. Metadata lookups touch the filesystem and run in a worker
thread so the event loop is never blocked.

Examples:
    >>> from unittest.mock import AsyncMock, Mock
    >>> middleware = ConditionalRequestMiddleware(AsyncMock(), engine=Mock(), context_path="/app")
    >>> middleware.context_path
    '/app'
    >>> _unquote_etag('W/"abc123"')
    'abc123'
"""

# Standard
import asyncio
from typing import Callable, Mapping, Optional

# Third-Party
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# First-Party
from webmerge.config import settings
from webmerge.services.logging_service import LoggingService
from webmerge.services.validation_service import get_validation_engine, ValidationEngine
from webmerge.utils.fingerprint import add_fingerprint, is_fingerprinted, remove_fingerprint
from webmerge.utils.resource_list import detect_extension, parse_resources, select_mime_for_extension

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

CONDITIONAL_METHODS = frozenset({"GET", "HEAD"})

# HTTP dates carry whole seconds, file times carry milliseconds
HEADER_DATE_RESOLUTION_MS = 999


def _unquote_etag(tag: str) -> str:
    """Strip weak marker, quotes and whitespace from an entity tag.

    Args:
        tag: Raw entity tag from a request header.

    Returns:
        The bare token.

    Examples:
        >>> _unquote_etag(' "abc-gzip" ')
        'abc-gzip'
        >>> _unquote_etag("abc")
        'abc'
    """
    tag = tag.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    if len(tag) >= 2 and tag.startswith('"') and tag.endswith('"'):
        tag = tag[1:-1]
    return tag


class ConditionalRequestMiddleware(BaseHTTPMiddleware):
    """Answer conditional requests for static resources from their validation tokens."""

    def __init__(
        self,
        app,
        engine: Optional[ValidationEngine] = None,
        context_path: Optional[str] = None,
        fingerprint_separator: Optional[str] = None,
        cache_max_age: Optional[int] = None,
    ):
        """Initialize the middleware.

        Args:
            app: The ASGI application serving the resources.
            engine: Validation engine; the process-wide one when omitted.
            context_path: Context prefix stripped from request paths.
            fingerprint_separator: Reserved fingerprint separator.
            cache_max_age: max-age in seconds for fingerprinted responses.
        """
        super().__init__(app)
        self.engine = engine
        self.context_path = settings.context_path if context_path is None else context_path
        self.fingerprint_separator = fingerprint_separator or settings.fingerprint_separator
        self.cache_max_age = settings.cache_max_age if cache_max_age is None else cache_max_age

    def _headers(self, etag: str, last_modified: int, fingerprinted: bool) -> dict[str, str]:
        """Validation headers for a response.

        Args:
            etag: Combined ETag.
            last_modified: Epoch milliseconds, 0 when unknown.
            fingerprinted: Whether the request URL carried a fingerprint.

        Returns:
            Header mapping.
        """
        headers = {"ETag": f'"{etag}"'}
        if last_modified > 0:
            headers["Last-Modified"] = ValidationEngine.format_header_date(last_modified)
        if fingerprinted:
            headers["Cache-Control"] = f"public, max-age={self.cache_max_age}"
        return headers

    def _is_not_modified(self, engine: ValidationEngine, request_headers: Mapping[str, str], resources: list[str], etag: str) -> bool:
        """Evaluate the request's preconditions against current metadata.

        ``If-None-Match`` wins over ``If-Modified-Since`` when both are present.

        Args:
            engine: Validation engine.
            request_headers: Incoming request headers.
            resources: Resources named by the request.
            etag: Current combined ETag.

        Returns:
            True when a 304 can be sent.
        """
        if_none_match = request_headers.get("if-none-match")
        if if_none_match is not None:
            for tag in if_none_match.split(","):
                tag = tag.strip()
                if tag == "*" or not engine.is_modified(resources, _unquote_etag(tag), etag):
                    return True
            return False

        since = engine.parse_header_date(request_headers.get("if-modified-since"))
        if since is None:
            return False
        return not engine.is_any_modified_since(resources, since + HEADER_DATE_RESOLUTION_MS)

    def _validate(self, engine: ValidationEngine, path: str, request_headers: Mapping[str, str], fingerprinted: bool) -> Optional[tuple[dict[str, str], bool]]:
        """Compute validation headers and the precondition outcome for ``path``.

        Blocking: stats, reads and may touch files.

        Args:
            engine: Validation engine.
            path: Request path without fingerprint.
            request_headers: Incoming request headers.
            fingerprinted: Whether the request URL carried a fingerprint.

        Returns:
            ``(headers, not_modified)``, or None when no resource resolves.
        """
        resources = parse_resources(self.context_path, path)
        etag = engine.combined_etag(resources)
        if etag is None:
            return None
        headers = self._headers(etag, engine.last_modified_of(resources), fingerprinted)
        return headers, self._is_not_modified(engine, request_headers, resources, etag)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Handle a request.

        Args:
            request: Incoming request.
            call_next: Next handler in the chain.

        Returns:
            A 304 response or the downstream response with validation headers.
        """
        if request.method not in CONDITIONAL_METHODS:
            return await call_next(request)

        path = request.url.path
        fingerprinted = is_fingerprinted(path, self.fingerprint_separator)
        if fingerprinted:
            path = remove_fingerprint(path, self.fingerprint_separator)

        extension = detect_extension(path)
        if extension is None:
            return await call_next(request)

        if fingerprinted:
            request.scope["path"] = path
            request.scope["raw_path"] = path.encode("utf-8")

        engine = self.engine or get_validation_engine()
        result = await asyncio.to_thread(self._validate, engine, path, request.headers, fingerprinted)
        if result is None:
            logger.debug(f"No resolvable resources for {path}")
            return await call_next(request)

        headers, not_modified = result
        if not_modified:
            logger.debug(f"Not modified: {path}")
            return Response(status_code=304, headers=headers)

        response = await call_next(request)
        if 200 <= response.status_code < 300:
            for name, value in headers.items():
                response.headers[name] = value
            if "content-type" not in response.headers:
                response.headers["Content-Type"] = select_mime_for_extension(extension)
        return response


def fingerprinted_url(request_uri: str, engine: Optional[ValidationEngine] = None, context_path: Optional[str] = None, separator: Optional[str] = None) -> str:
    """Build a URL carrying the current combined ETag of the resources it names.

    Args:
        request_uri: Plain resource URL, e.g. ``/app/js/a,b.js``.
        engine: Validation engine; the process-wide one when omitted.
        context_path: Context prefix; defaults to settings.
        separator: Fingerprint separator; defaults to settings.

    Returns:
        The fingerprinted URL, or ``request_uri`` unchanged when no resource resolves.

    Examples:
        >>> from unittest.mock import Mock
        >>> engine = Mock()
        >>> engine.combined_etag.return_value = "f00"
        >>> fingerprinted_url("/app/js/a,b.js", engine=engine, context_path="/app")
        '/app/js/a,b_wu_f00.js'
    """
    engine = engine or get_validation_engine()
    context_path = settings.context_path if context_path is None else context_path
    resources = parse_resources(context_path, request_uri)
    return add_fingerprint(engine.combined_etag(resources), request_uri, separator or settings.fingerprint_separator)
