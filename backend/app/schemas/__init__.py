# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Classbook API.

Request models forbid unknown fields; response models read straight from ORM
objects and service dataclasses.
"""

from .attendance import (
    AttendanceCreate,
    AttendanceListResponse,
    AttendanceLogResponse,
    AttendanceRecordResponse,
    LiveAttendanceResponse,
    StudentPresenceResponse,
    StudentStatsResponse,
)
from .availability import AvailabilityCreate, AvailabilityResponse, AvailabilityUpdate
from .booking import (
    BookingCancel,
    BookingCancelResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingDeleteResponse,
    BookingListResponse,
    BookingResponse,
)
from .main_responses import HealthResponse
from .package import PackageCreate, PackageOverride, PackageResponse, PackageSummaryResponse
from .slot import SlotListResponse, SlotResponse

__all__ = [
    "AttendanceCreate",
    "AttendanceListResponse",
    "AttendanceLogResponse",
    "AttendanceRecordResponse",
    "AvailabilityCreate",
    "AvailabilityResponse",
    "AvailabilityUpdate",
    "BookingCancel",
    "BookingCancelResponse",
    "BookingCreate",
    "BookingCreateResponse",
    "BookingDeleteResponse",
    "BookingListResponse",
    "BookingResponse",
    "HealthResponse",
    "LiveAttendanceResponse",
    "PackageCreate",
    "PackageOverride",
    "PackageResponse",
    "PackageSummaryResponse",
    "SlotListResponse",
    "SlotResponse",
    "StudentPresenceResponse",
    "StudentStatsResponse",
]
