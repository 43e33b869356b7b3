# backend/app/services/booking_service.py
"""
Booking Service for the Classbook platform.

Handles booking creation (which spends one package credit), role-scoped
listing, completion and the admin delete override. Cancellation lives in
CancellationService so the refund policy has a single home.

Creation runs in two phases:
- Phase 1 (one transaction): validate, lock the teacher window and the
  student's active package, re-count occupancy, insert, consume the credit.
- Phase 2 (no transaction held): create the calendar event; a failure is
  returned as a warning and never undoes the booking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DAY_NAMES, TIME_FORMAT
from ..core.enums import BookingStatus
from ..core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InsufficientNoticeException,
    NoCreditsException,
    NotFoundException,
    PolicyViolationException,
    RepositoryIntegrityException,
    SlotFullException,
)
from ..core.timezone_utils import as_utc, hours_until, to_school_time
from ..core.weekdays import day_of_week, is_bookable_day
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import AuthenticatedUser
from ..repositories.factory import RepositoryFactory
from .attendance_service import AttendanceService
from .base import BaseService
from .calendar_gateway import CalendarGateway
from .slot_service import is_slot_start

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    booking: Booking
    warnings: List[str] = field(default_factory=list)


class BookingService(BaseService):
    def __init__(self, db: Session, calendar: CalendarGateway, **kwargs):
        super().__init__(db, **kwargs)
        self.calendar = calendar
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.attendance_service = AttendanceService(db, clock=self.clock)

    def _get_visible_booking(self, actor: AuthenticatedUser, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not actor.is_admin and not booking.involves(actor.id):
            raise ForbiddenException("You don't have permission to access this booking")
        return booking

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        actor: AuthenticatedUser,
        teacher_id: str,
        topic_id: str,
        scheduled_at: datetime,
    ) -> BookingResult:
        """
        Book the calling student into a teacher slot.

        Raises:
            ForbiddenException: Caller is not a student
            NotFoundException: Unknown or inactive teacher
            InsufficientNoticeException: Slot starts within the lead time
            PolicyViolationException: Closed day, or not a slot of an active window
            NoCreditsException: No active package with remaining lessons
            BookingConflictException: Student already booked into this slot
            SlotFullException: Slot already at capacity
        """
        if not actor.is_student:
            raise ForbiddenException("Only students can book classes")

        now = self.now()
        scheduled_at = as_utc(scheduled_at)
        lead_hours = hours_until(scheduled_at, now)
        if lead_hours < settings.min_booking_lead_hours:
            raise InsufficientNoticeException(
                f"Bookings must be made at least {settings.min_booking_lead_hours:g} hour(s) in advance",
                required_hours=settings.min_booking_lead_hours,
                provided_hours=lead_hours,
            )

        local_start = to_school_time(scheduled_at)
        weekday = day_of_week(local_start)
        if not is_bookable_day(local_start.date()):
            raise PolicyViolationException(
                f"Classes cannot be booked on {DAY_NAMES[weekday]}",
                code="CLOSED_DAY",
                details={"day_of_week": int(weekday)},
            )

        teacher = self.user_repository.get_by_id(teacher_id)
        if teacher is None or not teacher.is_teacher or not teacher.is_active:
            raise NotFoundException("Teacher not found")

        # ========== PHASE 1: validate and write (one transaction) ==========
        with self.transaction():
            window = self.availability_repository.find_covering_window(
                teacher_id, int(weekday), local_start.strftime(TIME_FORMAT), lock=True
            )
            if window is None or not is_slot_start(window, local_start.time()):
                raise PolicyViolationException(
                    "Teacher is not available at this time",
                    code="TEACHER_NOT_AVAILABLE",
                    details={"teacher_id": teacher_id, "scheduled_at": scheduled_at.isoformat()},
                )

            package = self.package_repository.get_active_for_user(actor.id, now, lock=True)
            if package is None or package.remaining_lessons <= 0:
                raise NoCreditsException()

            if self.repository.student_has_booking_in_slot(actor.id, teacher_id, scheduled_at):
                raise BookingConflictException()

            booked = self.repository.count_in_slot(teacher_id, scheduled_at)
            if booked >= settings.slot_capacity:
                raise SlotFullException(settings.slot_capacity)

            try:
                booking = self.repository.create(
                    student_id=actor.id,
                    teacher_id=teacher_id,
                    topic_id=topic_id,
                    scheduled_at=scheduled_at,
                    status=BookingStatus.SCHEDULED.value,
                )
            except RepositoryIntegrityException:
                raise BookingConflictException()

            if not self.package_repository.consume_credit(package.id):
                raise NoCreditsException()

        prometheus_metrics.inc_booking_created()
        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            student_id=actor.id,
            teacher_id=teacher_id,
            package_id=package.id,
        )

        # ========== PHASE 2: calendar event (no transaction held) ==========
        warnings: List[str] = []
        event = self.calendar.create_class_event(booking, teacher.name)
        if event.ok:
            with self.transaction():
                booking.external_event_ref = event.event_id
                booking.join_link = event.join_link
        else:
            prometheus_metrics.inc_calendar_failure("create_event")
            warnings.append(event.reason or "Calendar event could not be created")

        return BookingResult(booking=booking, warnings=warnings)

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        actor: AuthenticatedUser,
        *,
        status: Optional[BookingStatus] = None,
        upcoming: bool = False,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Bookings visible to the caller.

        Students see their own, teachers see their classes (optionally one
        student's), admins see everything and may filter by either party.
        """
        if actor.is_student:
            student_id, teacher_id = actor.id, None
        elif actor.is_teacher:
            teacher_id = actor.id
        return self.repository.list_bookings(
            student_id=student_id,
            teacher_id=teacher_id,
            status=status,
            starting_after=self.now() if upcoming else None,
        )

    def get_booking(self, actor: AuthenticatedUser, booking_id: str) -> Booking:
        return self._get_visible_booking(actor, booking_id)

    @BaseService.measure_operation("complete_booking")
    def complete_booking(self, actor: AuthenticatedUser, booking_id: str) -> Booking:
        """Mark a class as held; only its teacher or an admin may do this."""
        with self.transaction():
            booking = self.repository.get_for_update(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found")
            if not (actor.is_admin or (actor.is_teacher and booking.teacher_id == actor.id)):
                raise ForbiddenException("Only the class teacher or an admin can complete a booking")

            booking.complete(self.now())
            self.repository.flush()
            self.attendance_service.recompute_student_stats(
                booking.student_id, use_transaction=False
            )

        self.log_operation("complete_booking", booking_id=booking.id, actor_id=actor.id)
        return booking

    @BaseService.measure_operation("delete_booking")
    def delete_booking(self, actor: AuthenticatedUser, booking_id: str) -> BookingResult:
        """
        Admin override: hard-delete a booking and its attendance logs.

        No credit is returned; use cancellation for that.
        """
        if not actor.is_admin:
            raise ForbiddenException("Only admins can delete bookings")

        with self.transaction():
            booking = self.repository.get_for_update(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found")
            event_ref = booking.external_event_ref if booking.is_scheduled else None
            student_id = booking.student_id
            self.repository.delete(booking_id)
            self.attendance_service.recompute_student_stats(student_id, use_transaction=False)

        self.logger.warning(
            "Booking %s deleted by admin %s",
            booking_id,
            actor.id,
            extra={"booking_id": booking_id, "actor_id": actor.id},
        )

        warnings: List[str] = []
        if event_ref:
            result = self.calendar.delete_class_event(event_ref)
            if not result.ok:
                prometheus_metrics.inc_calendar_failure("delete_event")
                warnings.append(result.reason or "Calendar event could not be deleted")
        return BookingResult(booking=booking, warnings=warnings)
