# backend/app/core/enums.py
"""
Core enums for the Classbook platform.

Role names mirror the claims issued by the external identity service.
Day-of-week values follow the 0=Sunday..6=Saturday convention used by
availability windows; convert Python dates with ``app.core.weekdays``.
"""

from enum import Enum, IntEnum


class RoleName(str, Enum):
    """Roles carried in the ``role`` claim of an access token."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class DayOfWeek(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class BookingStatus(str, Enum):
    """Lifecycle of a booking. COMPLETED and CANCELLED are terminal."""

    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AttendanceAction(str, Enum):
    JOINED = "joined"
    LEFT = "left"
    REJOINED = "rejoined"


class LiveAttendanceStatus(str, Enum):
    PRESENT = "present"
    LEFT = "left"
    ABSENT = "absent"
