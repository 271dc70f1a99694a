# -*- coding: utf-8 -*-
"""Location: ./webmerge/errors.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Exceptions for webmerge.

The engine itself degrades instead of raising (missing files are skipped,
bad dates parse to None). These types are used at the outer edges, where a
caller handed us something we cannot work with at all.
"""


class WebMergeError(Exception):
    """Base class for webmerge errors."""


class InvalidResourcePathError(WebMergeError):
    """A request URI or resource path that cannot be turned into resources.

    Attributes:
        path (str): the offending path.
        message (str): why it was rejected.
    """

    def __init__(self, path: str, message: str = "no resources found"):
        """Initialize the error.

        Args:
            path: the offending path.
            message: why it was rejected.

        Examples:
            >>> err = InvalidResourcePathError("/app/", "empty request")
            >>> (str(err), err.path)
            ('empty request: /app/', '/app/')
        """
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")
