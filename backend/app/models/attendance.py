# backend/app/models/attendance.py
"""
Attendance models.

Classes:
    AttendanceLog: Append-only join/leave events for a booking
    StudentStats: Derived per-student attendance aggregate (recomputable)
"""

import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class AttendanceLog(Base):
    __tablename__ = "attendance_logs"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    action = Column(String(20), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    recorded_by = Column(String(26), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    booking = relationship("Booking", back_populates="attendance_logs")

    __table_args__ = (
        CheckConstraint(
            "action IN ('joined', 'left', 'rejoined')", name="ck_attendance_logs_action"
        ),
        Index("idx_attendance_logs_booking_timestamp", "booking_id", "timestamp"),
        Index("idx_attendance_logs_student_timestamp", "student_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AttendanceLog {self.booking_id} {self.student_id} {self.action} @ {self.timestamp}>"


class StudentStats(Base):
    """Attendance aggregate; overwritten wholesale on every recompute."""

    __tablename__ = "student_stats"

    student_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    total_classes = Column(Integer, nullable=False, default=0)
    attended_classes = Column(Integer, nullable=False, default=0)
    attendance_rate = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return (
            f"<StudentStats {self.student_id}: {self.attended_classes}/{self.total_classes} "
            f"({self.attendance_rate}%)>"
        )
