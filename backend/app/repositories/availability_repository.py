# backend/app/repositories/availability_repository.py
"""
AvailabilityRepository - recurring weekly teacher windows.

Times are zero-padded "HH:MM" strings, so lexical comparison in SQL matches
chronological order and overlap/containment checks stay in the database.
"""

import logging
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import Availability
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[Availability]):
    def __init__(self, db: Session):
        super().__init__(db, Availability)

    def list_windows(
        self,
        teacher_id: Optional[str] = None,
        *,
        active_only: bool = True,
        day_of_week: Optional[int] = None,
    ) -> List[Availability]:
        """
        List windows ordered by day of week then start time.

        Args:
            teacher_id: Restrict to one teacher
            active_only: Skip soft-disabled windows
            day_of_week: Restrict to one day (0=Sunday)
        """
        query = self._build_query()
        if teacher_id is not None:
            query = query.filter(Availability.teacher_id == teacher_id)
        if active_only:
            query = query.filter(Availability.is_active.is_(True))
        if day_of_week is not None:
            query = query.filter(Availability.day_of_week == day_of_week)
        query = query.order_by(
            Availability.day_of_week, Availability.start_time, Availability.teacher_id
        )
        return self._execute_query(query)

    def find_overlapping(
        self,
        teacher_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Availability]:
        """Return an active window of the teacher that overlaps [start, end), if any."""
        try:
            query = self._build_query().filter(
                and_(
                    Availability.teacher_id == teacher_id,
                    Availability.day_of_week == day_of_week,
                    Availability.is_active.is_(True),
                    Availability.start_time < end_time,
                    Availability.end_time > start_time,
                )
            )
            if exclude_id is not None:
                query = query.filter(Availability.id != exclude_id)
            return query.order_by(Availability.start_time).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking availability overlap: {str(e)}")
            raise RepositoryException(f"Failed to check availability overlap: {str(e)}")

    def find_covering_window(
        self,
        teacher_id: str,
        day_of_week: int,
        wall_time: str,
        *,
        lock: bool = False,
    ) -> Optional[Availability]:
        """
        Return the active window whose [start, end) contains ``wall_time``.

        With ``lock=True`` the row is selected FOR UPDATE, serializing
        concurrent bookings into the same teacher window.
        """
        query = self._build_query().filter(
            and_(
                Availability.teacher_id == teacher_id,
                Availability.day_of_week == day_of_week,
                Availability.is_active.is_(True),
                Availability.start_time <= wall_time,
                Availability.end_time > wall_time,
            )
        )
        query = query.order_by(Availability.start_time)
        if lock:
            query = self._with_lock(query)
        return self._execute_first(query)
