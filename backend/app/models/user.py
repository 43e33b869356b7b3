# backend/app/models/user.py
"""
User model for the Classbook platform.

Identities are issued by the external auth service; this table mirrors the
subset the booking engine needs (role, display name, active flag).
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import RoleName
from ..database import Base

logger = logging.getLogger(__name__)


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(120), nullable=False)
    role = Column(String(20), nullable=False, default=RoleName.STUDENT.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    availability = relationship(
        "Availability", back_populates="teacher", cascade="all, delete-orphan"
    )
    packages = relationship("Package", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'teacher', 'student')", name="ck_users_role"),
    )

    @property
    def is_teacher(self) -> bool:
        return self.role == RoleName.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT.value

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"
