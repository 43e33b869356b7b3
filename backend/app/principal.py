"""Principal abstraction for authenticated API callers."""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import RoleName


@dataclass(frozen=True)
class AuthenticatedUser:
    """Caller identity taken from a verified access token."""

    user_id: str
    role: RoleName

    @property
    def id(self) -> str:
        return self.user_id

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == RoleName.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT
