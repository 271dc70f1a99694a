# -*- coding: utf-8 -*-
"""Location: ./webmerge/utils/fingerprint.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Cache-busting fingerprints embedded in resource URLs.

A fingerprint is a token (usually the resource ETag) inserted right before
the file extension behind a reserved separator, so a changed resource gets a
new URL and old URLs can be cached forever::

    /js/a,b.js  ->  /js/a,b_wu_0cc175b9c0f1b6a8.js

Examples:
    >>> from webmerge.utils.fingerprint import add_fingerprint, remove_fingerprint
    >>> add_fingerprint("abc123", "/js/a.js")
    '/js/a_wu_abc123.js'
    >>> remove_fingerprint("/js/a_wu_abc123.js")
    '/js/a.js'
"""

# Standard
from typing import Optional

FINGERPRINT_SEPARATOR = "_wu_"


def add_fingerprint(token: Optional[str], url: str, separator: str = FINGERPRINT_SEPARATOR) -> str:
    """Insert ``separator + token`` before the last ``.`` of ``url``.

    Args:
        token: Fingerprint, typically an ETag. None leaves the URL alone.
        url: URL or path to fingerprint.
        separator: Reserved separator.

    Returns:
        The fingerprinted URL. URLs without a ``.`` get the fingerprint appended.

    Examples:
        >>> add_fingerprint(None, "/js/a.js")
        '/js/a.js'
        >>> add_fingerprint("f00", "/js/jquery.min.js")
        '/js/jquery.min_wu_f00.js'
        >>> add_fingerprint("f00", "/api/bundle")
        '/api/bundle_wu_f00'
    """
    if token is None:
        return url
    dot = url.rfind(".")
    if dot < 0:
        return f"{url}{separator}{token}"
    return f"{url[:dot]}{separator}{token}{url[dot:]}"


def remove_fingerprint(url: str, separator: str = FINGERPRINT_SEPARATOR) -> str:
    """Strip a fingerprint added by :func:`add_fingerprint`.

    Args:
        url: Possibly fingerprinted URL.
        separator: Reserved separator.

    Returns:
        The URL without its fingerprint; unchanged when the separator is absent
        or starts the URL.

    Examples:
        >>> remove_fingerprint("/js/a.js")
        '/js/a.js'
        >>> remove_fingerprint("_wu_abc.js")
        '_wu_abc.js'
        >>> remove_fingerprint("/api/bundle_wu_f00")
        '/api/bundle'
    """
    start = url.find(separator)
    if start <= 0:
        return url
    dot = url.rfind(".")
    if dot < start:
        return url[:start]
    return url[:start] + url[dot:]


def is_fingerprinted(url: str, separator: str = FINGERPRINT_SEPARATOR) -> bool:
    """Whether ``url`` carries a fingerprint that :func:`remove_fingerprint` would strip.

    Args:
        url: URL or path.
        separator: Reserved separator.

    Returns:
        True when the separator appears after the first character.

    Examples:
        >>> is_fingerprinted("/css/site_wu_1a2b.css")
        True
        >>> is_fingerprinted("/css/site.css")
        False
    """
    return url.find(separator) > 0
