"""
Tests for utils.time module - UTC timestamp utilities.

This module tests the time helpers to ensure:
- All timestamps are timezone-aware (UTC)
- Formats use the 'Z' suffix
- Backup file slugs are filesystem-safe (hyphens instead of colons)
- Naive datetimes are rejected
"""

from datetime import UTC, datetime

import pytest
from freezegun import freeze_time

from seedkeeper.utils.time import file_slug_from_timestamp, utc_now, utc_timestamp


class TestUtcNow:
    """Test utc_now() function."""

    def test_has_utc_timezone(self):
        """utc_now() should return timezone-aware datetime with UTC."""
        result = utc_now()
        assert isinstance(result, datetime)
        assert result.tzinfo == UTC

    @freeze_time("2025-11-02 08:30:45")
    def test_frozen_time_returns_expected_datetime(self):
        """utc_now() should return frozen time when using freezegun."""
        result = utc_now()
        assert (result.year, result.month, result.day) == (2025, 11, 2)
        assert (result.hour, result.minute, result.second) == (8, 30, 45)


class TestUtcTimestamp:
    """Test utc_timestamp() function."""

    @freeze_time("2025-11-02 08:30:45")
    def test_format_is_iso8601_with_z_suffix(self):
        assert utc_timestamp() == "2025-11-02T08:30:45Z"

    def test_format_length_is_20_characters(self):
        """YYYY-MM-DDTHH:MM:SSZ"""
        assert len(utc_timestamp()) == 20

    @freeze_time("2025-12-31 23:59:59")
    def test_end_of_year_formatting(self):
        assert utc_timestamp() == "2025-12-31T23:59:59Z"


class TestFileSlugFromTimestamp:
    """Test file_slug_from_timestamp() function."""

    @freeze_time("2025-11-02 08:30:45")
    def test_default_uses_current_time(self):
        assert file_slug_from_timestamp() == "2025-11-02T08-30-45Z"

    def test_accepts_timezone_aware_datetime(self):
        dt = datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC)
        assert file_slug_from_timestamp(dt) == "2025-11-02T08-30-45Z"

    def test_raises_on_naive_datetime(self):
        """Naive datetimes are ambiguous and must be rejected."""
        with pytest.raises(ValueError) as exc_info:
            file_slug_from_timestamp(datetime(2025, 11, 2, 8, 30, 45))
        assert "timezone-aware" in str(exc_info.value)

    def test_slug_is_filesystem_safe(self):
        slug = file_slug_from_timestamp()
        for char in ':/\\*?"<>|':
            assert char not in slug

    def test_chronological_sorting(self):
        """Slugs sort in the same order as the moments they encode."""
        slugs = [
            file_slug_from_timestamp(datetime(2025, 11, day, 10, 0, 0, tzinfo=UTC))
            for day in (1, 2, 3)
        ]
        assert slugs == sorted(slugs)

    @freeze_time("2025-11-02 08:30:45")
    def test_matches_utc_timestamp(self):
        """Slug and timestamp describe the same frozen moment."""
        assert file_slug_from_timestamp() == utc_timestamp().replace(":", "-")
