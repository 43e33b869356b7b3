"""Canonical weekday numbering and the closed-day rule."""

from datetime import date, datetime

import pytest

from app.core.enums import DayOfWeek
from app.core.weekdays import day_of_week, is_bookable_day


@pytest.mark.parametrize(
    "value,expected",
    [
        (date(2026, 3, 1), DayOfWeek.SUNDAY),
        (date(2026, 3, 2), DayOfWeek.MONDAY),
        (date(2026, 3, 6), DayOfWeek.FRIDAY),
        (date(2026, 3, 7), DayOfWeek.SATURDAY),
        (datetime(2026, 3, 4, 23, 59), DayOfWeek.WEDNESDAY),
    ],
)
def test_day_of_week_is_sunday_based(value, expected):
    assert day_of_week(value) == expected


def test_every_day_bookable_when_nothing_closed():
    assert all(is_bookable_day(date(2026, 3, d), closed_weekdays=set()) for d in range(1, 8))


def test_closed_weekdays_block_only_those_days():
    closed = {DayOfWeek.SUNDAY.value, DayOfWeek.SATURDAY.value}
    assert not is_bookable_day(date(2026, 3, 1), closed_weekdays=closed)
    assert not is_bookable_day(date(2026, 3, 7), closed_weekdays=closed)
    assert is_bookable_day(date(2026, 3, 2), closed_weekdays=closed)


def test_defaults_to_configured_closed_days(monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "closed_weekdays", {DayOfWeek.MONDAY.value})
    assert not is_bookable_day(date(2026, 3, 2))
    assert is_bookable_day(date(2026, 3, 3))
