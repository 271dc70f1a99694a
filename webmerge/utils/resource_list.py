# -*- coding: utf-8 -*-
"""Location: ./webmerge/utils/resource_list.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Resource list parsing for merged resource requests.

A single request can name several resources joined by commas, sharing one
trailing extension::

    /context/js/a,b,c.js                -> /js/a.js, /js/b.js, /js/c.js
    /context/js/a,/js/libs/b,../yui/c.js -> /js/a.js, /js/libs/b.js, /js/yui/c.js

Each resource after the first may be absolute or relative to the directory
of the resource before it. The order of the result is the merge order.

Examples:
    >>> from webmerge.utils.resource_list import parse_resources
    >>> parse_resources("/app", "/app/js/a,b,c.js")
    ['/js/a.js', '/js/b.js', '/js/c.js']
"""

# Standard
import mimetypes
from typing import Optional

# First-Party
from webmerge.utils.path_algebra import parent_path, resolve

EXT_JS = ".js"
EXT_JSON = ".json"
EXT_CSS = ".css"

MIME_JS = "text/javascript"
MIME_JSON = "application/json"
MIME_CSS = "text/css"
MIME_OCTET_STREAM = "application/octet-stream"

# Checked in this order against the end of the request URI.
EXTENSION_MIME_TYPES: dict[str, str] = {
    EXT_JS: MIME_JS,
    EXT_JSON: MIME_JSON,
    EXT_CSS: MIME_CSS,
}


def detect_extension(request_uri: str) -> Optional[str]:
    """Return the shared extension of a request URI.

    Args:
        request_uri: Request path.

    Returns:
        ``.js``, ``.json`` or ``.css``, or None for anything else.

    Examples:
        >>> detect_extension("/js/a,b.js")
        '.js'
        >>> detect_extension("/data/x.json")
        '.json'
        >>> detect_extension("/img/logo.png") is None
        True
    """
    for extension in EXTENSION_MIME_TYPES:
        if request_uri.endswith(extension):
            return extension
    return None


def _strip_context(context_path: Optional[str], request_uri: str) -> str:
    """Drop the context prefix from ``request_uri`` when it is a whole leading segment.

    Args:
        context_path: Application context prefix, may be empty.
        request_uri: Request path.

    Returns:
        The context-relative request path.

    Examples:
        >>> _strip_context("/app", "/app/js/a.js")
        '/js/a.js'
        >>> _strip_context("", "/js/a.js")
        '/js/a.js'
        >>> _strip_context("/app", "/application/js/a.js")
        '/application/js/a.js'
        >>> _strip_context("/app/", "/app/js/a.js")
        '/js/a.js'
    """
    context = (context_path or "").rstrip("/")
    if context and (request_uri == context or request_uri.startswith(context + "/")):
        return request_uri[len(context) :]
    return request_uri


def parse_resources(context_path: Optional[str], request_uri: str) -> list[str]:
    """Split a comma-joined request URI into ordered, unique resource paths.

    Args:
        context_path: Application context prefix to strip.
        request_uri: Request path naming one or more resources.

    Returns:
        Resource paths in merge order with duplicates removed.

    Examples:
        >>> parse_resources("/app", "/app/js/a,/js/libs/b,../yui/c.js")
        ['/js/a.js', '/js/libs/b.js', '/js/yui/c.js']
        >>> parse_resources("", "/css/a,./b,a.css")
        ['/css/a.css', '/css/b.css']
        >>> parse_resources("", "/js/a,,b.js")
        ['/js/a.js', '/js/b.js']
    """
    extension = detect_extension(request_uri) or ""
    remainder = _strip_context(context_path, request_uri)

    resources: list[str] = []
    current = "/"
    for token in remainder.split(","):
        if not token:
            continue
        if extension and token.endswith(extension):
            token = token[: -len(extension)]
        path = resolve(current, token) + extension
        current = parent_path(path)
        if path not in resources:
            resources.append(path)
    return resources


def select_mime_by_file(file_path: Optional[str]) -> Optional[str]:
    """Pick a content type for a file path.

    Args:
        file_path: File path or name.

    Returns:
        Content type, ``application/octet-stream`` when unknown, None for None.

    Examples:
        >>> select_mime_by_file("/js/APP.JS")
        'text/javascript'
        >>> select_mime_by_file("/img/logo.png")
        'image/png'
        >>> select_mime_by_file("/bin/blob.unknownext")
        'application/octet-stream'
    """
    if file_path is None:
        return None
    lowered = file_path.lower()
    for extension, mime in EXTENSION_MIME_TYPES.items():
        if lowered.endswith(extension):
            return mime
    guess, _ = mimetypes.guess_type(file_path)
    return guess or MIME_OCTET_STREAM


def select_mime_for_extension(extension_or_file: Optional[str]) -> Optional[str]:
    """Pick a content type for an extension, falling back to file name guessing.

    Args:
        extension_or_file: ``.js``/``.css``/``.json`` or a full file path.

    Returns:
        Content type.

    Examples:
        >>> select_mime_for_extension(".css")
        'text/css'
        >>> select_mime_for_extension("/img/a.gif")
        'image/gif'
    """
    if extension_or_file in EXTENSION_MIME_TYPES:
        return EXTENSION_MIME_TYPES[extension_or_file]
    return select_mime_by_file(extension_or_file)
