"""
Tests for utils.time module - UTC timestamp utilities.

This module tests all time utility functions to ensure:
- All timestamps are timezone-aware (UTC)
- Formats match ISO 8601 with 'Z' suffix
- Elapsed time is measured from a monotonic reading
- Deterministic behavior with time mocking (freezegun)
"""

import re
import time
from datetime import UTC, datetime

from freezegun import freeze_time

from browser_oracle.utils.time import elapsed_ms, utc_now, utc_timestamp


class TestUtcNow:
    """Test utc_now() function."""

    def test_returns_datetime_object(self):
        assert isinstance(utc_now(), datetime)

    def test_has_utc_timezone(self):
        """utc_now() should return timezone-aware datetime with UTC."""
        result = utc_now()
        assert result.tzinfo is not None
        assert result.tzinfo == UTC

    @freeze_time("2026-10-18 08:30:45")
    def test_frozen_time_returns_expected_datetime(self):
        result = utc_now()
        assert (result.year, result.month, result.day) == (2026, 10, 18)
        assert (result.hour, result.minute, result.second) == (8, 30, 45)


class TestUtcTimestamp:
    """Test utc_timestamp() function."""

    @freeze_time("2026-10-18 08:30:45.123456")
    def test_format_drops_microseconds(self):
        assert utc_timestamp() == "2026-10-18T08:30:45Z"

    def test_matches_iso_pattern(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", utc_timestamp())


class TestElapsedMs:
    """Test elapsed_ms() function."""

    def test_non_negative(self):
        assert elapsed_ms(time.monotonic()) >= 0

    def test_measures_from_reading(self):
        """A reading two seconds in the past should give about 2000ms."""
        started = time.monotonic() - 2.0
        result = elapsed_ms(started)
        assert 2000.0 <= result < 3000.0
