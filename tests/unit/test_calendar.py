"""Unit tests for day and week boundaries."""

from datetime import datetime

import pytest

from levelup.modules.shared.calendar import (
    is_new_day,
    is_new_week,
    next_local_midnight,
    start_of_week,
    weekly_expiry,
)


@pytest.mark.unit
class TestDayBoundary:
    def test_midnight_crossing_is_new_day(self):
        assert is_new_day(datetime(2024, 3, 4, 23, 59), now=datetime(2024, 3, 5, 0, 1)) is True

    def test_same_day_is_not_new_day(self):
        assert is_new_day(datetime(2024, 3, 5, 0, 1), now=datetime(2024, 3, 5, 23, 59)) is False

    def test_next_local_midnight(self):
        assert next_local_midnight(datetime(2024, 3, 5, 13, 30)) == datetime(2024, 3, 6)
        assert next_local_midnight(datetime(2024, 3, 5)) == datetime(2024, 3, 6)


@pytest.mark.unit
class TestWeekBoundary:
    """Weeks start on Sunday 00:00."""

    def test_start_of_week_mid_week(self):
        # Wednesday
        assert start_of_week(datetime(2024, 3, 6, 10)) == datetime(2024, 3, 3)

    def test_start_of_week_on_sunday(self):
        assert start_of_week(datetime(2024, 3, 3, 0, 0)) == datetime(2024, 3, 3)

    def test_start_of_week_on_saturday(self):
        assert start_of_week(datetime(2024, 3, 9, 23, 59)) == datetime(2024, 3, 3)

    def test_saturday_to_sunday_is_new_week(self):
        assert is_new_week(datetime(2024, 3, 9, 23, 59), now=datetime(2024, 3, 10, 0, 1)) is True

    def test_sunday_to_monday_is_same_week(self):
        assert is_new_week(datetime(2024, 3, 10, 9), now=datetime(2024, 3, 11, 9)) is False

    def test_weekly_expiry_is_next_sunday(self):
        assert weekly_expiry(datetime(2024, 3, 6, 10)) == datetime(2024, 3, 10)
        # Generated on a Sunday: expires the following Sunday.
        assert weekly_expiry(datetime(2024, 3, 10, 8)) == datetime(2024, 3, 17)
