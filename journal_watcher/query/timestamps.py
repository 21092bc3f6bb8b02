"""
Lenient timestamp parsing for query bounds.

Accepted forms, tried in order:

1. plain non-negative integer seconds since epoch ("1700000000")
2. RFC 3339 date-time with explicit offset ("2023-11-14T22:13:20Z")
3. local date-time without offset ("2023-11-14T23:13:20")
4. bare calendar date, interpreted as local midnight ("2023-11-14")
"""

import re
from datetime import datetime
from typing import Optional, Tuple

from ..models.event import MAX_TIMESTAMP

INTEGER_PATTERN = re.compile(r"\+?[0-9]+")
OFFSET_DATETIME_PATTERN = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)
LOCAL_DATETIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def _epoch_seconds(dt: datetime) -> Optional[int]:
    try:
        value = int(dt.timestamp())
    except (OverflowError, OSError, ValueError):
        return None
    return value if 0 <= value <= MAX_TIMESTAMP else None


def _parse_integer(text: str) -> Optional[int]:
    if not INTEGER_PATTERN.fullmatch(text):
        return None
    value = int(text)
    return value if value <= MAX_TIMESTAMP else None


def _parse_offset_datetime(text: str) -> Optional[int]:
    match = OFFSET_DATETIME_PATTERN.fullmatch(text)
    if not match:
        return None
    date_part, time_part, offset = match.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        dt = datetime.strptime(f"{date_part}T{time_part}{offset}", "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return None
    return _epoch_seconds(dt)


def _parse_local_datetime(text: str) -> Optional[int]:
    if not LOCAL_DATETIME_PATTERN.fullmatch(text):
        return None
    try:
        dt = datetime.strptime(text, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    return _epoch_seconds(dt)


def _parse_date(text: str) -> Optional[int]:
    if not DATE_PATTERN.fullmatch(text):
        return None
    try:
        dt = datetime.strptime(text, "%Y-%m-%d")
    except ValueError:
        return None
    return _epoch_seconds(dt)


_PARSERS = (_parse_integer, _parse_offset_datetime, _parse_local_datetime, _parse_date)


def parse_timestamp_loosely(text: Optional[str]) -> Optional[int]:
    """
    Parse a timestamp in any of the accepted forms.

    Args:
        text: Timestamp text, or None

    Returns:
        Seconds since epoch, or None if the text is missing or not understood
    """
    if text is None:
        return None
    for parser in _PARSERS:
        value = parser(text)
        if value is not None:
            return value
    return None


def resolve_range(start: Optional[str], end: Optional[str]) -> Tuple[int, int]:
    """Resolve query bounds, defaulting to 0 and the maximum timestamp."""
    start_ts = parse_timestamp_loosely(start)
    end_ts = parse_timestamp_loosely(end)
    return (
        0 if start_ts is None else start_ts,
        MAX_TIMESTAMP if end_ts is None else end_ts,
    )
