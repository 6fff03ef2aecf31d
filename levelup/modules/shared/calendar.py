"""
Calendar boundaries on the player's local clock.

All datetimes are naive local time. Days start at midnight; weeks start on
Sunday at midnight.

Usage
-----
    from levelup.modules.shared.calendar import is_new_day, next_local_midnight

    is_new_day(datetime(2024, 3, 4, 23, 59), now=datetime(2024, 3, 5, 0, 1))  # True
"""

from __future__ import annotations

from datetime import datetime, timedelta


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def next_local_midnight(moment: datetime) -> datetime:
    """Midnight at the start of the following day (Daily quest expiry)."""
    return start_of_day(moment) + timedelta(days=1)


def start_of_week(moment: datetime) -> datetime:
    """Sunday 00:00 of the Sunday-anchored week containing ``moment``."""
    # weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (moment.weekday() + 1) % 7
    return start_of_day(moment) - timedelta(days=days_since_sunday)


def weekly_expiry(moment: datetime) -> datetime:
    """The next Sunday 00:00 strictly after ``moment``."""
    return start_of_week(moment) + timedelta(days=7)


def is_new_day(last_active: datetime, *, now: datetime) -> bool:
    return last_active.date() != now.date()


def is_new_week(last_active: datetime, *, now: datetime) -> bool:
    return start_of_week(last_active) != start_of_week(now)
