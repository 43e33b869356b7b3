# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the Classbook platform.

Key Components:
- BaseRepository: Generic CRUD with SQLAlchemy error translation
- RepositoryFactory: Factory for creating repository instances
- AvailabilityRepository: Teacher weekly windows
- BookingRepository: Bookings, slot occupancy, conditional cancellation
- PackageRepository: Lesson credits with guarded atomic updates
- AttendanceRepository / StudentStatsRepository: Attendance logs and aggregates

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    occupancy = repository.get_occupancy(start, end)
"""

from .attendance_repository import AttendanceRepository, StudentStatsRepository
from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .package_repository import PackageRepository
from .user_repository import UserRepository

__all__ = [
    "AttendanceRepository",
    "AvailabilityRepository",
    "BaseRepository",
    "BookingRepository",
    "PackageRepository",
    "RepositoryFactory",
    "StudentStatsRepository",
    "UserRepository",
]
