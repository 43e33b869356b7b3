# backend/app/models/booking.py
"""
Booking model for the Classbook platform.

A booking places one student into one teacher slot (an instant produced by
the slot generator). Status only moves forward:

    SCHEDULED -> COMPLETED
    SCHEDULED -> CANCELLED

COMPLETED and CANCELLED are terminal. Bookings are only hard-deleted through
the admin override.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus
from ..core.exceptions import InvalidTransitionException
from ..database import Base

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    BookingStatus.SCHEDULED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


class Booking(Base):
    """One student's seat in a teacher's class at ``scheduled_at`` (UTC)."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    student_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    teacher_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    topic_id = Column(String(64), nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.SCHEDULED.value, index=True)

    attended_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Calendar/conferencing event created after the booking commits
    external_event_ref = Column(String(255), nullable=True)
    join_link = Column(String(512), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    student = relationship("User", foreign_keys=[student_id])
    teacher = relationship("User", foreign_keys=[teacher_id])
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_id])
    attendance_logs = relationship(
        "AttendanceLog",
        back_populates="booking",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('SCHEDULED', 'COMPLETED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
        Index("idx_bookings_teacher_scheduled", "teacher_id", "scheduled_at"),
        Index("idx_bookings_student_status", "student_id", "status"),
        # One live seat per student per slot; cancelled rows do not count
        Index(
            "uq_bookings_student_slot_active",
            "teacher_id",
            "scheduled_at",
            "student_id",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.SCHEDULED.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, teacher={self.teacher_id}, "
            f"at={self.scheduled_at}, status={self.status}>"
        )

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in _ALLOWED_TRANSITIONS.get(BookingStatus(self.status), set())

    def transition_to(self, target: BookingStatus) -> None:
        """Move to ``target`` or raise InvalidTransitionException."""
        if not self.can_transition_to(target):
            raise InvalidTransitionException(self.status, target.value)
        self.status = target.value

    def complete(self, now: Optional[datetime] = None) -> None:
        """Mark booking as completed."""
        self.transition_to(BookingStatus.COMPLETED)
        self.completed_at = now or datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    def mark_attended(self, now: Optional[datetime] = None) -> bool:
        """Set ``attended_at`` once; returns False when it was already set."""
        if self.attended_at is not None:
            return False
        self.attended_at = now or datetime.now(timezone.utc)
        return True

    @property
    def is_scheduled(self) -> bool:
        return self.status == BookingStatus.SCHEDULED.value

    def involves(self, user_id: str) -> bool:
        return user_id in (self.student_id, self.teacher_id)
