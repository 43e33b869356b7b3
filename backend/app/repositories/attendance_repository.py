# backend/app/repositories/attendance_repository.py
"""
Attendance data access: append-only logs and the derived StudentStats row.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.timezone_utils import as_utc
from ..models.attendance import AttendanceLog, StudentStats
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AttendanceRepository(BaseRepository[AttendanceLog]):
    def __init__(self, db: Session):
        super().__init__(db, AttendanceLog)

    def list_logs(
        self,
        *,
        booking_id: Optional[str] = None,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        newest_first: bool = True,
        limit: Optional[int] = None,
    ) -> List[AttendanceLog]:
        """Logs matching every given filter; ``teacher_id`` scopes to that teacher's classes."""
        query = self._build_query()
        if teacher_id is not None:
            query = query.join(Booking, Booking.id == AttendanceLog.booking_id).filter(
                Booking.teacher_id == teacher_id
            )
        if booking_id is not None:
            query = query.filter(AttendanceLog.booking_id == booking_id)
        if student_id is not None:
            query = query.filter(AttendanceLog.student_id == student_id)
        if start is not None:
            query = query.filter(AttendanceLog.timestamp >= as_utc(start))
        if end is not None:
            query = query.filter(AttendanceLog.timestamp <= as_utc(end))
        if newest_first:
            query = query.order_by(AttendanceLog.timestamp.desc(), AttendanceLog.id.desc())
        else:
            query = query.order_by(AttendanceLog.timestamp, AttendanceLog.id)
        if limit is not None:
            query = query.limit(limit)
        return self._execute_query(query)


class StudentStatsRepository(BaseRepository[StudentStats]):
    def __init__(self, db: Session):
        super().__init__(db, StudentStats)

    def get_for_student(self, student_id: str) -> Optional[StudentStats]:
        try:
            return self.db.get(StudentStats, student_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading stats for {student_id}: {str(e)}")
            raise RepositoryException(f"Failed to load student stats: {str(e)}")

    def upsert(
        self,
        student_id: str,
        *,
        total_classes: int,
        attended_classes: int,
        attendance_rate: int,
        updated_at: datetime,
    ) -> StudentStats:
        """Overwrite (or create) the stats row for a student."""
        try:
            stats = self.db.get(StudentStats, student_id)
            if stats is None:
                stats = StudentStats(student_id=student_id)
                self.db.add(stats)
            stats.total_classes = total_classes
            stats.attended_classes = attended_classes
            stats.attendance_rate = attendance_rate
            stats.updated_at = as_utc(updated_at)
            self.db.flush()
            return stats
        except SQLAlchemyError as e:
            self.logger.error(f"Error upserting stats for {student_id}: {str(e)}")
            raise RepositoryException(f"Failed to save student stats: {str(e)}")
