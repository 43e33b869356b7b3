# backend/app/services/availability_service.py
"""
Availability Service for the Classbook platform.

Teachers manage their own recurring weekly windows; admins may manage any
teacher's. Active windows of one teacher on one day never overlap.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import TIME_PATTERN
from ..core.enums import DayOfWeek
from ..core.exceptions import (
    AvailabilityOverlapException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..models.availability import Availability
from ..principal import AuthenticatedUser
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(TIME_PATTERN)


def _validate_window(day_of_week: int, start_time: str, end_time: str) -> None:
    if day_of_week not in {d.value for d in DayOfWeek}:
        raise ValidationException(
            "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
            details={"day_of_week": day_of_week},
        )
    for label, value in (("start_time", start_time), ("end_time", end_time)):
        if not _TIME_RE.match(value or ""):
            raise ValidationException(
                f"{label} must use HH:MM format", details={label: value}
            )
    if end_time <= start_time:
        raise ValidationException(
            "End time must be after start time",
            details={"start_time": start_time, "end_time": end_time},
        )


class AvailabilityService(BaseService):
    def __init__(self, db: Session, **kwargs):
        super().__init__(db, **kwargs)
        self.repository = RepositoryFactory.create_availability_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def _resolve_teacher(self, actor: AuthenticatedUser, teacher_id: Optional[str]) -> str:
        if actor.is_teacher:
            if teacher_id is not None and teacher_id != actor.id:
                raise ForbiddenException("Teachers can only manage their own availability")
            return actor.id
        if actor.is_admin:
            if not teacher_id:
                raise ValidationException("teacher_id is required")
            teacher = self.user_repository.get_by_id(teacher_id)
            if teacher is None or not teacher.is_teacher:
                raise NotFoundException("Teacher not found")
            return teacher_id
        raise ForbiddenException("Only teachers can manage availability")

    def _get_owned_window(self, actor: AuthenticatedUser, window_id: str) -> Availability:
        window = self.repository.get_by_id(window_id)
        if window is None:
            raise NotFoundException("Availability not found")
        if not (actor.is_admin or (actor.is_teacher and window.teacher_id == actor.id)):
            raise ForbiddenException("You can only manage your own availability")
        return window

    def _ensure_no_overlap(
        self,
        teacher_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        conflict = self.repository.find_overlapping(
            teacher_id, day_of_week, start_time, end_time, exclude_id=exclude_id
        )
        if conflict is not None:
            raise AvailabilityOverlapException(
                day_of_week, f"{start_time}-{end_time}", conflict.time_range
            )

    def list_availability(
        self,
        actor: AuthenticatedUser,
        teacher_id: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Availability]:
        """
        Teachers see their own windows; everyone else may filter by teacher.

        Soft-disabled windows are only shown to teachers and admins on request.
        """
        if actor.is_teacher:
            teacher_id = actor.id
        active_only = not (include_inactive and not actor.is_student)
        return self.repository.list_windows(teacher_id, active_only=active_only)

    @BaseService.measure_operation("create_availability")
    def create_window(
        self,
        actor: AuthenticatedUser,
        day_of_week: int,
        start_time: str,
        end_time: str,
        teacher_id: Optional[str] = None,
    ) -> Availability:
        owner_id = self._resolve_teacher(actor, teacher_id)
        _validate_window(day_of_week, start_time, end_time)

        with self.transaction():
            self._ensure_no_overlap(owner_id, day_of_week, start_time, end_time)
            window = self.repository.create(
                teacher_id=owner_id,
                day_of_week=day_of_week,
                start_time=start_time,
                end_time=end_time,
                is_active=True,
            )

        self.log_operation(
            "create_availability",
            availability_id=window.id,
            teacher_id=owner_id,
            day_of_week=day_of_week,
        )
        return window

    @BaseService.measure_operation("update_availability")
    def update_window(
        self,
        actor: AuthenticatedUser,
        window_id: str,
        *,
        day_of_week: Optional[int] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Availability:
        """Apply a partial update; the resulting window is re-validated and re-checked for overlap."""
        with self.transaction():
            window = self._get_owned_window(actor, window_id)
            new_day = window.day_of_week if day_of_week is None else day_of_week
            new_start = start_time or window.start_time
            new_end = end_time or window.end_time
            new_active = window.is_active if is_active is None else is_active

            _validate_window(new_day, new_start, new_end)
            if new_active:
                self._ensure_no_overlap(
                    window.teacher_id, new_day, new_start, new_end, exclude_id=window.id
                )

            window.day_of_week = new_day
            window.start_time = new_start
            window.end_time = new_end
            window.is_active = new_active
            window.updated_at = self.now()
            self.repository.flush()

        self.log_operation("update_availability", availability_id=window.id)
        return window

    @BaseService.measure_operation("deactivate_availability")
    def deactivate_window(self, actor: AuthenticatedUser, window_id: str) -> Availability:
        """Soft-disable a window. Existing bookings are untouched."""
        with self.transaction():
            window = self._get_owned_window(actor, window_id)
            window.is_active = False
            window.updated_at = self.now()
            self.repository.flush()

        self.log_operation("deactivate_availability", availability_id=window.id)
        return window
