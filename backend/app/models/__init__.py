"""
Database models for the Classbook platform.

This module exports all SQLAlchemy models used in the application:
- Users (mirror of the external identity store)
- Teacher availability windows
- Bookings
- Lesson packages (credits)
- Attendance logs and derived student statistics
"""

from .attendance import AttendanceLog, StudentStats
from .availability import Availability
from .booking import Booking
from .package import Package
from .user import User

__all__ = [
    "AttendanceLog",
    "Availability",
    "Booking",
    "Package",
    "StudentStats",
    "User",
]
