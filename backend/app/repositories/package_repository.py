# backend/app/repositories/package_repository.py
"""
PackageRepository - lesson credit bundles.

Credit moves are single UPDATE statements. Consumption is guarded in the WHERE
clause so two concurrent requests cannot both spend the last credit.
"""

from datetime import datetime
import logging
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.timezone_utils import as_utc
from ..models.package import Package
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PackageRepository(BaseRepository[Package]):
    def __init__(self, db: Session):
        super().__init__(db, Package)

    def get_active_for_user(
        self, user_id: str, now: datetime, *, lock: bool = False
    ) -> Optional[Package]:
        """
        The most recently created package still valid at ``now``.

        Exactly one package is ever "active"; credits are consumed from and
        refunded to this one only.
        """
        query = (
            self._build_query()
            .filter(and_(Package.user_id == user_id, Package.valid_until >= as_utc(now)))
            .order_by(Package.created_at.desc(), Package.id.desc())
        )
        if lock:
            query = self._with_lock(query)
        return self._execute_first(query)

    def consume_credit(self, package_id: str) -> bool:
        """used += 1, remaining -= 1 if a credit is left. False when exhausted."""
        return self._apply_credit_delta(
            package_id, used_delta=1, guard=Package.remaining_lessons > 0
        )

    def refund_credit(self, package_id: str) -> bool:
        """
        used -= 1, remaining += 1, unconditionally.

        The credit may have been spent on an older package (a renewal granted
        after booking), so ``used_lessons`` can drop below zero here; the sum
        with ``remaining_lessons`` still equals ``total_lessons``.
        """
        return self._apply_credit_delta(package_id, used_delta=-1)

    def _apply_credit_delta(self, package_id: str, *, used_delta: int, guard=None) -> bool:
        criteria = [Package.id == package_id]
        if guard is not None:
            criteria.append(guard)
        try:
            updated = (
                self.db.query(Package)
                .filter(and_(*criteria))
                .update(
                    {
                        Package.used_lessons: Package.used_lessons + used_delta,
                        Package.remaining_lessons: Package.remaining_lessons - used_delta,
                    },
                    synchronize_session="fetch",
                )
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error adjusting credits on package {package_id}: {str(e)}")
            raise RepositoryException(f"Failed to adjust package credits: {str(e)}")
        return updated == 1
