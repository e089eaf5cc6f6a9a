"""
Tests for datetime utilities module.
"""
import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import patch

from app.core import datetime_utils
from app.core.datetime_utils import (
    ensure_timezone_aware,
    is_window_valid,
    is_within_window,
    to_utc,
)


class TestEnsureTimezoneAware:
    """Tests for ensure_timezone_aware function."""

    def test_naive_datetime_becomes_utc(self):
        """Test that a naive datetime is treated as UTC."""
        naive_dt = datetime(2024, 1, 15, 12, 30, 45)

        result = ensure_timezone_aware(naive_dt)

        assert result.tzinfo == timezone.utc
        assert result.replace(tzinfo=None) == naive_dt

    def test_aware_datetime_unchanged(self):
        """Test that aware datetimes are returned as-is."""
        tz_plus_5 = timezone(timedelta(hours=5))
        aware_dt = datetime(2024, 1, 15, 12, 30, 45, tzinfo=tz_plus_5)

        result = ensure_timezone_aware(aware_dt)

        assert result is aware_dt

    def test_none_raises(self):
        with pytest.raises(ValueError, match="cannot be None"):
            ensure_timezone_aware(None)


class TestToUtc:
    def test_offset_is_converted(self):
        tz_plus_2 = timezone(timedelta(hours=2))
        aware_dt = datetime(2024, 6, 1, 14, 0, tzinfo=tz_plus_2)

        result = to_utc(aware_dt)

        assert result.tzinfo == timezone.utc
        assert result.hour == 12
        assert result == aware_dt

    def test_naive_is_taken_as_utc(self):
        result = to_utc(datetime(2024, 6, 1, 14, 0))

        assert result == datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc)


class TestWindows:
    """Tests for test window helpers."""

    START = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)
    END = datetime(2024, 3, 8, 8, 0, tzinfo=timezone.utc)

    def test_window_valid_only_when_end_after_start(self):
        assert is_window_valid(self.START, self.END) is True
        assert is_window_valid(self.START, self.START) is False
        assert is_window_valid(self.END, self.START) is False

    def test_window_compares_naive_and_aware(self):
        assert is_window_valid(self.START.replace(tzinfo=None), self.END) is True

    @pytest.mark.parametrize(
        "moment,expected",
        [
            (datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc), True),
            (datetime(2024, 3, 4, 0, 0, tzinfo=timezone.utc), True),
            (datetime(2024, 3, 8, 8, 0, tzinfo=timezone.utc), False),
            (datetime(2024, 2, 28, 0, 0, tzinfo=timezone.utc), False),
        ],
    )
    def test_within_window_is_half_open(self, moment, expected):
        assert is_within_window(self.START, self.END, at=moment) is expected

    def test_within_window_defaults_to_now(self):
        inside = datetime(2024, 3, 2, tzinfo=timezone.utc)
        with patch.object(datetime_utils, "utc_now", return_value=inside):
            assert is_within_window(self.START, self.END) is True
