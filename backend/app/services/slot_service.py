# backend/app/services/slot_service.py
"""
Slot Service for the Classbook platform.

Expands recurring teacher availability into concrete bookable instants for a
date range and annotates each with its occupancy. A slot starts every
``SLOT_DURATION_MINUTES`` from the window start, up to but excluding the
window end, and is hidden when it starts sooner than the minimum lead time.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import logging
from typing import Dict, Iterator, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..core.timezone_utils import school_wall_clock_to_utc
from ..core.weekdays import day_of_week, is_bookable_day
from ..models.availability import Availability
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    teacher_id: str
    teacher_name: str
    date_time: datetime
    available: bool
    booked_count: int
    capacity: int


def window_instants(
    day: date, start: time, end: time, step_minutes: Optional[int] = None
) -> Iterator[datetime]:
    """
    Yield UTC slot starts for one window on one school-local date.

    Inverted or zero-length windows yield nothing.
    """
    step = timedelta(minutes=step_minutes or settings.slot_duration_minutes)
    cursor = datetime.combine(day, start)
    window_end = datetime.combine(day, end)
    while cursor < window_end:
        yield school_wall_clock_to_utc(day, cursor.time())
        cursor += step


def is_slot_start(window: Availability, wall_time: time) -> bool:
    """Whether ``wall_time`` falls on the slot grid of ``window``."""
    if wall_time.second or wall_time.microsecond:
        return False
    offset = (wall_time.hour * 60 + wall_time.minute) - (
        window.start.hour * 60 + window.start.minute
    )
    return 0 <= offset and offset % settings.slot_duration_minutes == 0 and wall_time < window.end


class SlotService(BaseService):
    """Availability minus consumed capacity, over a date range."""

    def __init__(self, db: Session, **kwargs):
        super().__init__(db, **kwargs)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def _validate_range(self, start_date: date, end_date: date) -> None:
        if end_date < start_date:
            raise ValidationException(
                "end_date must not be before start_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        span = (end_date - start_date).days + 1
        if span > settings.max_slot_range_days:
            raise ValidationException(
                f"Date range may span at most {settings.max_slot_range_days} days",
                details={"requested_days": span},
            )

    @BaseService.measure_operation("generate_slots")
    def generate_slots(
        self,
        start_date: date,
        end_date: date,
        teacher_id: Optional[str] = None,
    ) -> List[Slot]:
        """
        Generate bookable slots between two school-local dates (inclusive).

        Args:
            start_date: First date of the range
            end_date: Last date of the range
            teacher_id: Restrict to one teacher

        Returns:
            Slots sorted by start instant, then teacher

        Raises:
            ValidationException: Inverted or oversized range
        """
        self._validate_range(start_date, end_date)

        windows = self.availability_repository.list_windows(teacher_id, active_only=True)
        if not windows:
            return []

        windows_by_day: Dict[int, List[Availability]] = defaultdict(list)
        for window in windows:
            windows_by_day[window.day_of_week].append(window)

        range_start = school_wall_clock_to_utc(start_date, time.min)
        range_end = school_wall_clock_to_utc(end_date + timedelta(days=1), time.min)
        occupancy = self.booking_repository.get_occupancy(range_start, range_end, teacher_id)
        teacher_names = self.user_repository.get_names(w.teacher_id for w in windows)

        earliest = self.now() + timedelta(hours=settings.min_booking_lead_hours)
        capacity = settings.slot_capacity
        seen: Set[Tuple[str, datetime]] = set()
        slots: List[Slot] = []

        day = start_date
        while day <= end_date:
            if is_bookable_day(day):
                for window in windows_by_day.get(int(day_of_week(day)), []):
                    for instant in window_instants(day, window.start, window.end):
                        key = (window.teacher_id, instant)
                        if instant < earliest or key in seen:
                            continue
                        seen.add(key)
                        booked = occupancy.get(key, 0)
                        slots.append(
                            Slot(
                                teacher_id=window.teacher_id,
                                teacher_name=teacher_names.get(window.teacher_id, ""),
                                date_time=instant,
                                available=booked < capacity,
                                booked_count=booked,
                                capacity=capacity,
                            )
                        )
            day += timedelta(days=1)

        slots.sort(key=lambda slot: (slot.date_time, slot.teacher_id))
        self.logger.debug(
            "Generated %d slots for %s..%s teacher=%s",
            len(slots),
            start_date,
            end_date,
            teacher_id,
        )
        return slots
