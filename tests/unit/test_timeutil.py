"""Tests for the date-window helper."""
from datetime import date, datetime
from unittest.mock import patch

import pytest

from examsync.timeutil import upcoming_dates, utcnow


class TestUpcomingDates:
    def test_consecutive_days_from_start(self):
        assert upcoming_dates(3, start=date(2025, 6, 1)) == [
            date(2025, 6, 1), date(2025, 6, 2), date(2025, 6, 3),
        ]

    def test_crosses_month_boundary(self):
        assert upcoming_dates(2, start=date(2025, 1, 31)) == [
            date(2025, 1, 31), date(2025, 2, 1),
        ]

    def test_zero_days(self):
        assert upcoming_dates(0, start=date(2025, 6, 1)) == []

    def test_negative_days_rejected(self):
        with pytest.raises(ValueError):
            upcoming_dates(-1)

    def test_defaults_to_utc_today(self):
        with patch("examsync.timeutil.utcnow", return_value=datetime(2025, 6, 1, 23, 59)):
            assert upcoming_dates(2) == [date(2025, 6, 1), date(2025, 6, 2)]


def test_utcnow_is_naive():
    assert utcnow().tzinfo is None
