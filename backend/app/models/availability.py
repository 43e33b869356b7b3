# backend/app/models/availability.py
"""
Availability model for the Classbook platform.

A teacher publishes recurring weekly windows (day of week + wall-clock
start/end in the school timezone). Windows are soft-disabled through
``is_active`` and never hard-deleted, so historic bookings keep their context.

Classes:
    Availability: One recurring weekly window for a teacher
"""

from datetime import datetime, time
import logging

from sqlalchemy import (
    Boolean,
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

from ..core.constants import TIME_FORMAT
from ..database import Base

logger = logging.getLogger(__name__)


class Availability(Base):
    """Recurring weekly availability window (0=Sunday..6=Saturday)."""

    __tablename__ = "availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("User", back_populates="availability")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        Index("idx_availability_teacher_day", "teacher_id", "day_of_week", "is_active"),
    )

    @property
    def start(self) -> time:
        return datetime.strptime(self.start_time, TIME_FORMAT).time()

    @property
    def end(self) -> time:
        return datetime.strptime(self.end_time, TIME_FORMAT).time()

    @property
    def time_range(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def overlaps(self, start_time: str, end_time: str) -> bool:
        """Half-open interval overlap on zero-padded HH:MM strings."""
        return start_time < self.end_time and end_time > self.start_time

    def __repr__(self) -> str:
        return (
            f"<Availability {self.id}: teacher={self.teacher_id}, day={self.day_of_week}, "
            f"{self.time_range}, active={self.is_active}>"
        )
