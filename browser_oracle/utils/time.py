"""
UTC timestamp utilities for Browser Oracle.

All timestamps MUST be in UTC with explicit timezone markers.

This module provides:
- utc_now(): Current time as timezone-aware datetime
- utc_timestamp(): ISO 8601 timestamp string with 'Z' suffix
- elapsed_ms(): Milliseconds elapsed since a time.monotonic() reading

Examples:
    >>> from browser_oracle.utils.time import utc_now, utc_timestamp
    >>> now = utc_now()
    >>> now.tzinfo
    datetime.timezone.utc
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
"""

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time in UTC with timezone info.

    Returns:
        datetime: Current UTC time with tzinfo=timezone.utc

    Note:
        NEVER use datetime.now() without timezone parameter.
        NEVER use datetime.utcnow() (deprecated, returns naive datetime).
    """
    return datetime.now(UTC)


def utc_timestamp() -> str:
    """
    Return ISO 8601 timestamp string with 'Z' suffix.

    Format: YYYY-MM-DDTHH:MM:SSZ
    Example: 2025-11-02T08:30:45Z

    Returns:
        str: ISO 8601 formatted timestamp in UTC
    """
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def elapsed_ms(started: float) -> float:
    """
    Return milliseconds elapsed since a time.monotonic() reading.

    Args:
        started: Value previously returned by time.monotonic()

    Returns:
        float: Elapsed wall time in milliseconds

    Example:
        >>> start = time.monotonic()
        >>> elapsed_ms(start) >= 0
        True
    """
    return (time.monotonic() - started) * 1000.0
