# backend/app/repositories/booking_repository.py
"""
Booking Repository for the Classbook platform.

This repository handles:
- Booking CRUD operations
- Slot occupancy counts (SCHEDULED + COMPLETED consume capacity)
- Role-scoped booking listings
- The conditional SCHEDULED -> CANCELLED update used by cancellation
- Completion counts feeding student statistics
"""

from datetime import datetime
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import RepositoryException
from ..core.timezone_utils import as_utc
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

OCCUPYING_STATUSES = (BookingStatus.SCHEDULED.value, BookingStatus.COMPLETED.value)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        query = self._with_lock(self._build_query().filter(Booking.id == booking_id))
        return self._execute_first(query)

    # Occupancy

    def get_occupancy(
        self,
        start: datetime,
        end: datetime,
        teacher_id: Optional[str] = None,
    ) -> Dict[Tuple[str, datetime], int]:
        """
        Count capacity-consuming bookings per (teacher, instant) in [start, end].

        Keys use aware UTC datetimes so they compare equal to generated slots.
        """
        try:
            query = self.db.query(
                Booking.teacher_id, Booking.scheduled_at, func.count(Booking.id)
            ).filter(
                and_(
                    Booking.status.in_(OCCUPYING_STATUSES),
                    Booking.scheduled_at >= as_utc(start),
                    Booking.scheduled_at <= as_utc(end),
                )
            )
            if teacher_id is not None:
                query = query.filter(Booking.teacher_id == teacher_id)
            rows = query.group_by(Booking.teacher_id, Booking.scheduled_at).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting slot occupancy: {str(e)}")
            raise RepositoryException(f"Failed to count slot occupancy: {str(e)}")

        occupancy: Dict[Tuple[str, datetime], int] = {}
        for row_teacher_id, scheduled_at, count in rows:
            key = (row_teacher_id, as_utc(scheduled_at))
            occupancy[key] = occupancy.get(key, 0) + int(count)
        return occupancy

    def count_in_slot(self, teacher_id: str, scheduled_at: datetime) -> int:
        query = self.db.query(func.count(Booking.id)).filter(
            and_(
                Booking.teacher_id == teacher_id,
                Booking.scheduled_at == as_utc(scheduled_at),
                Booking.status.in_(OCCUPYING_STATUSES),
            )
        )
        return int(self._execute_scalar(query) or 0)

    def student_has_booking_in_slot(
        self, student_id: str, teacher_id: str, scheduled_at: datetime
    ) -> bool:
        query = self._build_query().filter(
            and_(
                Booking.student_id == student_id,
                Booking.teacher_id == teacher_id,
                Booking.scheduled_at == as_utc(scheduled_at),
                Booking.status != BookingStatus.CANCELLED.value,
            )
        )
        return self._execute_first(query) is not None

    def teacher_has_student(self, teacher_id: str, student_id: str) -> bool:
        """True when the student has ever booked a class with the teacher."""
        query = self._build_query().filter(
            and_(Booking.teacher_id == teacher_id, Booking.student_id == student_id)
        )
        return self._execute_first(query) is not None

    # Listings

    def list_bookings(
        self,
        *,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        starting_after: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Booking]:
        """Bookings matching every given filter, soonest first."""
        query = self._build_query()
        if student_id is not None:
            query = query.filter(Booking.student_id == student_id)
        if teacher_id is not None:
            query = query.filter(Booking.teacher_id == teacher_id)
        if status is not None:
            query = query.filter(Booking.status == status.value)
        if starting_after is not None:
            query = query.filter(Booking.scheduled_at >= as_utc(starting_after))
        query = query.order_by(Booking.scheduled_at, Booking.id)
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)

    def list_class_roster(self, teacher_id: str, scheduled_at: datetime) -> List[Booking]:
        """Non-cancelled bookings sharing one teacher slot (the "class")."""
        query = (
            self._build_query()
            .filter(
                and_(
                    Booking.teacher_id == teacher_id,
                    Booking.scheduled_at == as_utc(scheduled_at),
                    Booking.status != BookingStatus.CANCELLED.value,
                )
            )
            .order_by(Booking.created_at, Booking.id)
        )
        return self._execute_query(query)

    # State changes

    def cancel_if_scheduled(
        self,
        booking_id: str,
        cancelled_by_id: str,
        cancelled_at: datetime,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Atomically move a SCHEDULED booking to CANCELLED.

        Returns:
            True if this call performed the transition, False if the booking
            was no longer SCHEDULED (a concurrent cancel or completion won).
        """
        try:
            updated = (
                self.db.query(Booking)
                .filter(
                    and_(
                        Booking.id == booking_id,
                        Booking.status == BookingStatus.SCHEDULED.value,
                    )
                )
                .update(
                    {
                        Booking.status: BookingStatus.CANCELLED.value,
                        Booking.cancelled_at: as_utc(cancelled_at),
                        Booking.cancelled_by_id: cancelled_by_id,
                        Booking.cancellation_reason: reason,
                    },
                    synchronize_session="fetch",
                )
            )
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error cancelling booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to cancel booking: {str(e)}")
        return updated == 1

    # Statistics

    def get_completion_counts(self, student_id: str) -> Tuple[int, int]:
        """Return (completed, completed-and-attended) counts for a student."""
        try:
            total, attended = (
                self.db.query(
                    func.count(Booking.id),
                    func.coalesce(
                        func.sum(case((Booking.attended_at.isnot(None), 1), else_=0)), 0
                    ),
                )
                .filter(
                    and_(
                        Booking.student_id == student_id,
                        Booking.status == BookingStatus.COMPLETED.value,
                    )
                )
                .one()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting completed bookings: {str(e)}")
            raise RepositoryException(f"Failed to count completed bookings: {str(e)}")
        return int(total or 0), int(attended or 0)
