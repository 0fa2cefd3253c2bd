"""
Kindred Backend — UTC Time Helpers
===================================

What:  Small helpers for timezone-aware timestamps and UTC day boundaries.
Why:   Credits refresh and analytics roll up per UTC calendar day. SQLite (tests)
       hands back naive datetimes even for timezone-aware columns, so every
       comparison goes through as_utc() first.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date) -> datetime:
    """Midnight UTC at the start of `day`."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open [start, end) UTC interval covering `day`."""
    start = start_of_day(day)
    return start, start + timedelta(days=1)


def today_utc() -> date:
    return utcnow().date()
