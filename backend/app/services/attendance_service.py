# backend/app/services/attendance_service.py
"""
Attendance Service for the Classbook platform.

Owns the append-only attendance log and is the only writer of StudentStats.

Rules:
- Every accepted event is logged, whatever the booking status.
- A "joined" event sets ``booking.attended_at`` once (later joins keep the
  first timestamp) and recomputes the student's stats.
- "left" and "rejoined" only append to the log.
- attendance_rate = round-half-up(100 * attended / total), 0 when total is 0,
  where total counts COMPLETED bookings and attended counts those with
  ``attended_at`` set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import LIVE_WINDOW_AFTER_MINUTES, LIVE_WINDOW_BEFORE_MINUTES
from ..core.enums import AttendanceAction, LiveAttendanceStatus
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..core.timezone_utils import as_utc
from ..models.attendance import AttendanceLog, StudentStats
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import AuthenticatedUser
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


def attendance_rate(total_classes: int, attended_classes: int) -> int:
    """Percentage rounded half-up, 0 when there are no completed classes."""
    if total_classes <= 0:
        return 0
    return (200 * attended_classes + total_classes) // (2 * total_classes)


@dataclass
class AttendanceRecordResult:
    log: AttendanceLog
    booking: Booking
    stats: Optional[StudentStats] = None


@dataclass
class StudentPresence:
    student_id: str
    booking_id: str
    status: LiveAttendanceStatus
    student_name: Optional[str] = None
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    minutes_attended: int = 0
    events: int = 0


@dataclass
class LiveAttendance:
    teacher_id: str
    scheduled_at: datetime
    window_start: datetime
    window_end: datetime
    students: List[StudentPresence] = field(default_factory=list)

    @property
    def present_count(self) -> int:
        return sum(1 for s in self.students if s.status == LiveAttendanceStatus.PRESENT)


class AttendanceService(BaseService):
    def __init__(self, db: Session, **kwargs):
        super().__init__(db, **kwargs)
        self.attendance_repository = RepositoryFactory.create_attendance_repository(db)
        self.stats_repository = RepositoryFactory.create_student_stats_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def _check_can_record(self, actor: AuthenticatedUser, booking: Booking, student_id: str) -> None:
        if actor.is_admin:
            return
        if actor.is_teacher and booking.teacher_id == actor.id:
            return
        if actor.is_student and student_id == actor.id:
            return
        raise ForbiddenException("You don't have permission to record attendance for this booking")

    @BaseService.measure_operation("record_attendance")
    def record_attendance(
        self,
        actor: AuthenticatedUser,
        booking_id: str,
        student_id: str,
        action: AttendanceAction,
        timestamp: Optional[datetime] = None,
    ) -> AttendanceRecordResult:
        """
        Append an attendance event and apply its side effects.

        Raises:
            NotFoundException: Unknown booking
            ValidationException: Student is not on the booking
            ForbiddenException: Caller may not record for this booking/student
        """
        now = self.now()
        with self.transaction():
            booking = self.booking_repository.get_for_update(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found")
            self._check_can_record(actor, booking, student_id)
            if booking.student_id != student_id:
                raise ValidationException(
                    "Student is not on this booking",
                    code="STUDENT_NOT_ON_BOOKING",
                    details={"booking_id": booking_id, "student_id": student_id},
                )

            log = self.attendance_repository.create(
                booking_id=booking_id,
                student_id=student_id,
                action=action.value,
                timestamp=as_utc(timestamp or now),
                recorded_by=actor.id,
            )

            stats = None
            if action == AttendanceAction.JOINED:
                if booking.mark_attended(now):
                    self.booking_repository.flush()
                else:
                    self.logger.debug("Booking %s already marked attended", booking_id)
                stats = self.recompute_student_stats(student_id, use_transaction=False)

        prometheus_metrics.inc_attendance_event(action.value)
        self.log_operation(
            "record_attendance",
            booking_id=booking_id,
            student_id=student_id,
            action=action.value,
        )
        return AttendanceRecordResult(log=log, booking=booking, stats=stats)

    @BaseService.measure_operation("recompute_student_stats")
    def recompute_student_stats(self, student_id: str, use_transaction: bool = True) -> StudentStats:
        """
        Rebuild StudentStats for one student from bookings.

        Args:
            student_id: Student to recompute
            use_transaction: False when the caller already holds a transaction
        """

        def _recompute() -> StudentStats:
            total, attended = self.booking_repository.get_completion_counts(student_id)
            return self.stats_repository.upsert(
                student_id,
                total_classes=total,
                attended_classes=attended,
                attendance_rate=attendance_rate(total, attended),
                updated_at=self.now(),
            )

        if not use_transaction:
            return _recompute()
        with self.transaction():
            return _recompute()

    def rebuild_student_stats(self, actor: AuthenticatedUser, student_id: str) -> StudentStats:
        """Admin repair: recompute one student's stats from their bookings."""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can recompute statistics")
        student = self.user_repository.get_by_id(student_id)
        if student is None or not student.is_student:
            raise NotFoundException("Student not found")
        return self.recompute_student_stats(student_id)

    def get_student_stats(self, actor: AuthenticatedUser, student_id: str) -> StudentStats:
        """
        Stored stats, or an unsaved zero row when none exist yet.

        Students read their own; teachers only students who booked with them.
        """
        if actor.is_student and actor.id != student_id:
            raise ForbiddenException("You can only view your own statistics")
        if actor.is_teacher and not self.booking_repository.teacher_has_student(
            actor.id, student_id
        ):
            raise ForbiddenException("You can only view statistics of your own students")
        stats = self.stats_repository.get_for_student(student_id)
        if stats is None:
            return StudentStats(
                student_id=student_id, total_classes=0, attended_classes=0, attendance_rate=0
            )
        return stats

    @BaseService.measure_operation("list_attendance")
    def list_attendance(
        self,
        actor: AuthenticatedUser,
        *,
        booking_id: Optional[str] = None,
        student_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[AttendanceLog]:
        """Attendance logs, newest first. Students see only their own, teachers only their classes."""
        teacher_id = None
        if actor.is_student:
            if student_id is not None and student_id != actor.id:
                raise ForbiddenException("You can only view your own attendance")
            student_id = actor.id
        elif actor.is_teacher:
            if booking_id is not None:
                booking = self.booking_repository.get_by_id(booking_id)
                if booking is None:
                    raise NotFoundException("Booking not found")
                if booking.teacher_id != actor.id:
                    raise ForbiddenException("You can only view attendance for your own classes")
            teacher_id = actor.id
        if start is not None and end is not None and end < start:
            raise ValidationException("end must not be before start")
        return self.attendance_repository.list_logs(
            booking_id=booking_id,
            student_id=student_id,
            teacher_id=teacher_id,
            start=start,
            end=end,
            limit=limit,
        )

    @BaseService.measure_operation("live_attendance")
    def live_attendance(self, actor: AuthenticatedUser, booking_id: str) -> LiveAttendance:
        """
        Who is in the class right now.

        The class is every non-cancelled booking sharing the teacher slot of
        ``booking_id``. Logs from 30 minutes before to 90 minutes after the
        start are replayed per student.
        """
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not (actor.is_admin or (actor.is_teacher and booking.teacher_id == actor.id)):
            raise ForbiddenException("Only the class teacher or an admin can view live attendance")

        scheduled_at = as_utc(booking.scheduled_at)
        window_start = scheduled_at - timedelta(minutes=LIVE_WINDOW_BEFORE_MINUTES)
        window_end = scheduled_at + timedelta(minutes=LIVE_WINDOW_AFTER_MINUTES)
        cutoff = min(as_utc(self.now()), window_end)

        roster = self.booking_repository.list_class_roster(booking.teacher_id, scheduled_at)
        names = self.user_repository.get_names(seat.student_id for seat in roster)
        live = LiveAttendance(
            teacher_id=booking.teacher_id,
            scheduled_at=scheduled_at,
            window_start=window_start,
            window_end=window_end,
        )
        for seat in roster:
            logs = self.attendance_repository.list_logs(
                booking_id=seat.id, start=window_start, end=window_end, newest_first=False
            )
            presence = _replay_presence(seat, logs, cutoff)
            presence.student_name = names.get(seat.student_id)
            live.students.append(presence)
        return live


def _replay_presence(booking: Booking, logs: List[AttendanceLog], cutoff: datetime) -> StudentPresence:
    presence = StudentPresence(
        student_id=booking.student_id,
        booking_id=booking.id,
        status=LiveAttendanceStatus.ABSENT,
        events=len(logs),
    )
    seconds = 0.0
    present_since: Optional[datetime] = None
    for log in logs:
        ts = as_utc(log.timestamp)
        if log.action in (AttendanceAction.JOINED.value, AttendanceAction.REJOINED.value):
            if presence.joined_at is None:
                presence.joined_at = ts
            if present_since is None:
                present_since = ts
            presence.status = LiveAttendanceStatus.PRESENT
        elif log.action == AttendanceAction.LEFT.value:
            if present_since is not None:
                seconds += max((ts - present_since).total_seconds(), 0.0)
                present_since = None
            presence.left_at = ts
            presence.status = LiveAttendanceStatus.LEFT
    if present_since is not None:
        seconds += max((cutoff - present_since).total_seconds(), 0.0)
    presence.minutes_attended = int(seconds // 60)
    return presence
