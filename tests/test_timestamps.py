"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

from repo_icons.utils.timestamps import format_timestamp, utc_now


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        """Test that utc_now returns a timezone-aware datetime in UTC."""
        now = utc_now()

        assert now.tzinfo == timezone.utc
        assert isinstance(now, datetime)

    def test_utc_now_is_recent(self):
        """Test that utc_now returns a recent timestamp."""
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestFormatTimestamp:
    """Tests for format_timestamp function."""

    def test_format_utc(self):
        dt = datetime(2025, 11, 4, 12, 30, 45, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2025-11-04T12:30:45Z"

    def test_naive_datetime_treated_as_utc(self):
        """Test that naive datetimes are not shifted."""
        assert format_timestamp(datetime(2025, 1, 1, 8, 0, 0)) == "2025-01-01T08:00:00Z"

    def test_other_timezone_converted(self):
        """Test that aware datetimes are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        dt = datetime(2025, 6, 1, 14, 0, 0, tzinfo=plus_two)

        assert format_timestamp(dt) == "2025-06-01T12:00:00Z"
