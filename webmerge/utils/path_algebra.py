# -*- coding: utf-8 -*-
"""Location: ./webmerge/utils/path_algebra.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Path algebra for context-relative resource paths.

Pure string operations, no filesystem access. Paths are always ``/``
separated; a leading ``/`` makes a path absolute (context-relative), anything
else is relative to a base path.

Examples:
    >>> from webmerge.utils.path_algebra import parent_path, resolve
    >>> parent_path("/js/libs/b.js")
    '/js/libs'
    >>> resolve("/js/libs", "../yui/c.js")
    '/js/yui/c.js'
    >>> resolve("/js", "./a.js")
    '/js/a.js'
"""

# Standard
import re
from typing import Optional

_LEADING_DOT_SLASH_RE = re.compile(r"^(?:\./)+")
_REPEATED_SEPARATOR_RE = re.compile(r"/(?:\.?/)+")
_PROTOCOL_URL_RE = re.compile(r"^[a-z0-9+.\-]+:.*$", re.IGNORECASE | re.DOTALL)


def parent_path(path: Optional[str]) -> Optional[str]:
    """Return ``path`` without its last segment.

    A trailing slash (other than root) is dropped first. Root and
    single-segment paths have ``/`` as parent.

    Args:
        path: A ``/`` separated path.

    Returns:
        The parent path, or None for None.

    Examples:
        >>> parent_path("/js/a.js")
        '/js'
        >>> parent_path("/js/libs/")
        '/js'
        >>> parent_path("/a.js")
        '/'
        >>> parent_path("/")
        '/'
        >>> parent_path(None) is None
        True
    """
    if path is None:
        return None
    path = path.strip()
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]
    last = path.rfind("/")
    if len(path) > 1 and last > 0:
        return path[:last]
    return "/"


def _fold_dot_segments(path: str) -> str:
    """Resolve ``.`` and ``..`` segments left inside a path, clamping at root.

    Args:
        path: Path with separators already collapsed.

    Returns:
        Path without dot segments.

    Examples:
        >>> _fold_dot_segments("/js/libs/../yui/c.js")
        '/js/yui/c.js'
        >>> _fold_dot_segments("/../../a.js")
        '/a.js'
        >>> _fold_dot_segments("/js/a.js")
        '/js/a.js'
    """
    segments = path.split("/")
    if ".." not in segments and "." not in segments:
        return path

    absolute = path.startswith("/")
    folded: list[str] = []
    for segment in segments[1:] if absolute else segments:
        if segment == "..":
            if folded:
                folded.pop()
        elif segment != ".":
            folded.append(segment)
    joined = "/".join(folded)
    return "/" + joined if absolute else joined


def normalize(path: str) -> str:
    """Collapse runs of ``/`` and ``./`` and fold any remaining dot segments.

    Args:
        path: Path to normalize.

    Returns:
        Normalized path.

    Examples:
        >>> normalize("//js///a.js")
        '/js/a.js'
        >>> normalize("/js/././a.js")
        '/js/a.js'
    """
    return _fold_dot_segments(_REPEATED_SEPARATOR_RE.sub("/", path))


def resolve(base: Optional[str], relative: Optional[str]) -> Optional[str]:
    """Resolve ``relative`` against the directory ``base``.

    Absolute ``relative`` paths are taken as-is. Each leading ``../`` climbs
    one directory from ``base``; climbing past root stays at root.

    Args:
        base: Directory path to resolve against. None is treated as root.
        relative: Path to resolve.

    Returns:
        The normalized resolved path, or None if ``relative`` is None.

    Examples:
        >>> resolve("/", "/js/a")
        '/js/a'
        >>> resolve("/js", "b")
        '/js/b'
        >>> resolve("/js", "../../../x.css")
        '/x.css'
        >>> resolve("/js", None) is None
        True
    """
    if relative is None:
        return None
    base = base.strip() if base is not None else "/"
    if not base:
        base = "/"

    relative = _LEADING_DOT_SLASH_RE.sub("", relative)

    if relative.startswith("/"):
        path = relative
    else:
        while relative.startswith("../"):
            relative = _LEADING_DOT_SLASH_RE.sub("", relative[3:])
            base = "/" if base == "/" else parent_path(base)
        path = f"{base}/{relative}"

    return normalize(path)


def last_segment(path: str) -> str:
    """Return the final ``/`` separated segment of ``path``.

    Args:
        path: A path.

    Returns:
        The last segment, empty for root.

    Examples:
        >>> last_segment("/js/a.js")
        'a.js'
        >>> last_segment("/")
        ''
    """
    return path.rstrip("/").rsplit("/", 1)[-1]


def is_protocol_url(url: Optional[str]) -> bool:
    """Whether ``url`` carries a scheme such as ``http:`` or ``data:``.

    Args:
        url: URL or path.

    Returns:
        True for scheme URLs, False for paths and blank values.

    Examples:
        >>> is_protocol_url("http://cdn.example.com/a.png")
        True
        >>> is_protocol_url("data:image/png;base64,AAAA")
        True
        >>> is_protocol_url("../img/a.png")
        False
        >>> is_protocol_url("  ")
        False
    """
    if url is None or not url.strip():
        return False
    return bool(_PROTOCOL_URL_RE.match(url))


def is_protocol_relative(url: Optional[str]) -> bool:
    """Whether ``url`` is a scheme-less network reference (``//host/path``).

    Args:
        url: URL or path.

    Returns:
        True when the URL starts with ``//``.

    Examples:
        >>> is_protocol_relative("//cdn.example.com/a.png")
        True
        >>> is_protocol_relative("/img/a.png")
        False
    """
    return bool(url) and url.startswith("//")
