# backend/app/models/package.py
"""
Lesson package (credit bundle) model.

``used_lessons + remaining_lessons == total_lessons`` holds for every change
made by the booking and cancellation engines. A refund onto a renewed package
can take ``used_lessons`` below zero. Only the admin override may break the
sum (including driving ``remaining_lessons`` negative).
"""

import logging

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class Package(Base):
    __tablename__ = "packages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    total_lessons = Column(Integer, nullable=False)
    used_lessons = Column(Integer, nullable=False, default=0)
    remaining_lessons = Column(Integer, nullable=False)
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="packages")

    __table_args__ = (
        CheckConstraint("total_lessons >= 0", name="ck_packages_total_non_negative"),
        Index("idx_packages_user_valid_until", "user_id", "valid_until"),
    )

    @property
    def is_balanced(self) -> bool:
        return self.used_lessons + self.remaining_lessons == self.total_lessons

    def __repr__(self) -> str:
        return (
            f"<Package {self.id}: user={self.user_id}, "
            f"{self.used_lessons}/{self.total_lessons} used, remaining={self.remaining_lessons}>"
        )
