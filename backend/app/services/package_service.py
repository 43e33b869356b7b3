# backend/app/services/package_service.py
"""
Package Service: lesson credit bundles.

Reads the active package for the dashboard, lets admins grant packages, and
provides the admin override that is the only path allowed to break
``used + remaining == total``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..core.timezone_utils import as_utc
from ..models.package import Package
from ..principal import AuthenticatedUser
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageSummary:
    package_id: Optional[str]
    total_lessons: int
    used_lessons: int
    remaining_lessons: int
    valid_until: Optional[datetime]

    @classmethod
    def empty(cls) -> "PackageSummary":
        return cls(
            package_id=None, total_lessons=0, used_lessons=0, remaining_lessons=0, valid_until=None
        )

    @classmethod
    def from_package(cls, package: Package) -> "PackageSummary":
        return cls(
            package_id=package.id,
            total_lessons=package.total_lessons,
            used_lessons=package.used_lessons,
            remaining_lessons=package.remaining_lessons,
            valid_until=as_utc(package.valid_until),
        )


class PackageService(BaseService):
    def __init__(self, db: Session, **kwargs):
        super().__init__(db, **kwargs)
        self.repository = RepositoryFactory.create_package_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    def get_active_package_summary(
        self, actor: AuthenticatedUser, user_id: Optional[str] = None
    ) -> PackageSummary:
        """Active package of the caller (or, for staff, of ``user_id``); zeros when none."""
        target_id = user_id or actor.id
        if actor.is_student and target_id != actor.id:
            raise ForbiddenException("You can only view your own package")
        package = self.repository.get_active_for_user(target_id, self.now())
        if package is None:
            return PackageSummary.empty()
        return PackageSummary.from_package(package)

    @BaseService.measure_operation("grant_package")
    def grant_package(
        self,
        actor: AuthenticatedUser,
        user_id: str,
        total_lessons: int,
        valid_from: datetime,
        valid_until: datetime,
    ) -> Package:
        if not actor.is_admin:
            raise ForbiddenException("Only admins can grant packages")
        if total_lessons <= 0:
            raise ValidationException("total_lessons must be positive")
        if as_utc(valid_until) <= as_utc(valid_from):
            raise ValidationException("valid_until must be after valid_from")

        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        if not user.is_student:
            raise ValidationException("Packages can only be granted to students")

        with self.transaction():
            package = self.repository.create(
                user_id=user_id,
                total_lessons=total_lessons,
                used_lessons=0,
                remaining_lessons=total_lessons,
                valid_from=as_utc(valid_from),
                valid_until=as_utc(valid_until),
                created_at=self.now(),
            )

        self.log_operation(
            "grant_package", package_id=package.id, user_id=user_id, total_lessons=total_lessons
        )
        return package

    @BaseService.measure_operation("override_package")
    def admin_override(
        self,
        actor: AuthenticatedUser,
        package_id: str,
        *,
        total_lessons: Optional[int] = None,
        used_lessons: Optional[int] = None,
        remaining_lessons: Optional[int] = None,
        valid_until: Optional[datetime] = None,
    ) -> Package:
        """Set package counters directly. May leave the package unbalanced."""
        if not actor.is_admin:
            raise ForbiddenException("Only admins can adjust packages")
        if total_lessons is not None and total_lessons < 0:
            raise ValidationException("total_lessons cannot be negative")

        with self.transaction():
            package = self.repository.get_by_id(package_id)
            if package is None:
                raise NotFoundException("Package not found")
            before = (package.total_lessons, package.used_lessons, package.remaining_lessons)
            if total_lessons is not None:
                package.total_lessons = total_lessons
            if used_lessons is not None:
                package.used_lessons = used_lessons
            if remaining_lessons is not None:
                package.remaining_lessons = remaining_lessons
            if valid_until is not None:
                package.valid_until = as_utc(valid_until)
            self.repository.flush()

        self.logger.warning(
            "Admin %s overrode package %s: total/used/remaining %s -> %s%s",
            actor.id,
            package.id,
            before,
            (package.total_lessons, package.used_lessons, package.remaining_lessons),
            "" if package.is_balanced else " (unbalanced)",
            extra={"package_id": package.id, "actor_id": actor.id},
        )
        return package
