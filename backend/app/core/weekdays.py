"""
Canonical weekday handling.

Python numbers weekdays Monday=0..Sunday=6 while availability windows are
stored Sunday=0..Saturday=6. Every conversion goes through ``day_of_week``
and every closed-day decision goes through ``is_bookable_day``.
"""

from datetime import date, datetime
from typing import AbstractSet, Optional, Union

from .config import settings
from .enums import DayOfWeek


def day_of_week(value: Union[date, datetime]) -> DayOfWeek:
    """Return the 0=Sunday..6=Saturday weekday of a date."""
    return DayOfWeek((value.weekday() + 1) % 7)


def is_bookable_day(
    value: Union[date, datetime], closed_weekdays: Optional[AbstractSet[int]] = None
) -> bool:
    """Whether classes may be booked on this date under the closed-day rule."""
    closed = settings.closed_weekdays if closed_weekdays is None else closed_weekdays
    return int(day_of_week(value)) not in closed
