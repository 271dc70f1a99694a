# -*- coding: utf-8 -*-
"""Location: ./webmerge/utils/http_dates.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

HTTP header date parsing and formatting.

``If-Modified-Since`` values arrive in any of the date formats HTTP has ever
allowed. Parsing tries an ordered list of strategies and returns the first
success:

1. the preferred HTTP header format (``Sun, 06 Nov 1994 08:49:37 GMT``)
2. RFC 1123 with any zone (``Sun, 06 Nov 1994 10:49:37 +0200``)
3. RFC 1036 (``Sunday, 06-Nov-94 08:49:37 GMT``)
4. ANSI C asctime (``Sun Nov  6 08:49:37 1994``)

Timestamps are integer epoch milliseconds; zone-less values are UTC.

Examples:
    >>> from webmerge.utils.http_dates import parse_header_date, format_header_date
    >>> parse_header_date("Sun, 06 Nov 1994 08:49:37 GMT")
    784111777000
    >>> parse_header_date("Sunday, 06-Nov-94 08:49:37 GMT")
    784111777000
    >>> parse_header_date("Sun Nov  6 08:49:37 1994")
    784111777000
    >>> parse_header_date("yesterday") is None
    True
    >>> format_header_date(784111777000)
    'Sun, 06 Nov 1994 08:49:37 GMT'
"""

# Standard
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import formatdate, parsedate_to_datetime
from typing import Callable, Optional

# First-Party
from webmerge.services.logging_service import LoggingService

logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

DATE_PATTERN_HTTP_HEADER = "%a, %d %b %Y %H:%M:%S GMT"
DATE_PATTERN_RFC_1036 = "%A, %d-%b-%y %H:%M:%S GMT"
DATE_PATTERN_ANSI_C = "%a %b %d %H:%M:%S %Y"


@dataclass(frozen=True)
class DateParser:
    """A named header date parsing strategy."""

    name: str
    parse: Callable[[str], datetime]


def _strptime_parser(pattern: str) -> Callable[[str], datetime]:
    """Build a parser for a fixed ``strptime`` pattern.

    Args:
        pattern: ``strptime`` format.

    Returns:
        Callable parsing a string with that pattern.
    """

    def _parse(value: str) -> datetime:
        """Parse ``value`` with the captured pattern.

        Args:
            value: Header value.

        Returns:
            Parsed datetime.
        """
        return datetime.strptime(value.strip(), pattern)

    return _parse


def _rfc1123_parser(value: str) -> datetime:
    """Parse an RFC 1123 date with an arbitrary zone.

    Args:
        value: Header value.

    Returns:
        Parsed datetime.

    Raises:
        ValueError: If ``value`` is not an RFC 1123 date.
    """
    parsed = parsedate_to_datetime(value)
    if parsed is None:
        raise ValueError(f"not an RFC 1123 date: {value!r}")
    return parsed


DATE_PARSERS: tuple[DateParser, ...] = (
    DateParser("HTTP header", _strptime_parser(DATE_PATTERN_HTTP_HEADER)),
    DateParser("RFC 1123", _rfc1123_parser),
    DateParser("RFC 1036", _strptime_parser(DATE_PATTERN_RFC_1036)),
    DateParser("ANSI C", _strptime_parser(DATE_PATTERN_ANSI_C)),
)


def _to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds, assuming UTC when naive.

    Args:
        value: Datetime to convert.

    Returns:
        Milliseconds since the epoch.

    Examples:
        >>> _to_millis(datetime(1970, 1, 1, 0, 0, 1))
        1000
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def parse_header_date(value: Optional[str], parsers: tuple[DateParser, ...] = DATE_PARSERS) -> Optional[int]:
    """Parse an HTTP header date with each strategy in turn.

    Args:
        value: Header value, e.g. from ``If-Modified-Since``.
        parsers: Strategies to try, in order.

    Returns:
        Epoch milliseconds of the first successful parse, or None when none matched.

    Examples:
        >>> parse_header_date("Sun, 06 Nov 1994 10:49:37 +0200")
        784111777000
        >>> parse_header_date(None) is None
        True
    """
    if not value:
        return None
    for parser in parsers:
        try:
            return _to_millis(parser.parse(value))
        except (TypeError, ValueError, IndexError) as exc:
            logger.debug(f"Date parsing using {parser.name} pattern failed for {value!r}: {exc}")
    logger.warning(f"Unparseable header date: {value!r}")
    return None


def format_header_date(timestamp: int) -> str:
    """Format epoch milliseconds in the preferred HTTP header format.

    Args:
        timestamp: Milliseconds since the epoch.

    Returns:
        Date string in GMT.

    Examples:
        >>> format_header_date(0)
        'Thu, 01 Jan 1970 00:00:00 GMT'
    """
    return formatdate(timestamp / 1000, usegmt=True)
