"""
Timezone utilities for the Classbook platform.

Availability windows are wall-clock times in the school timezone; bookings
are stored as UTC instants.
"""

from datetime import date, datetime, time

import pytz

from .config import settings


def get_school_timezone() -> pytz.BaseTzInfo:
    return pytz.timezone(settings.school_timezone)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def as_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    SQLite drops tzinfo on round-trip, so naive values read back from the
    database are treated as UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def school_wall_clock_to_utc(day: date, wall_time: time) -> datetime:
    """
    Convert a school-local date + wall-clock time to a UTC instant.

    Args:
        day: Calendar date in the school timezone
        wall_time: Naive wall-clock time

    Returns:
        Aware UTC datetime
    """
    tz = get_school_timezone()
    local_dt = tz.localize(datetime.combine(day, wall_time))
    return local_dt.astimezone(pytz.UTC)


def to_school_time(dt: datetime) -> datetime:
    return as_utc(dt).astimezone(get_school_timezone())


def hours_until(target: datetime, now: datetime) -> float:
    return (as_utc(target) - as_utc(now)).total_seconds() / 3600
