# backend/app/schemas/attendance.py
"""Attendance log, live attendance and student stats schemas."""

from typing import List, Optional

from pydantic import Field

from ..core.enums import AttendanceAction, LiveAttendanceStatus
from .base import StandardizedModel, StrictRequestModel, UtcDateTime


class AttendanceCreate(StrictRequestModel):
    booking_id: str
    student_id: str
    action: AttendanceAction
    timestamp: Optional[UtcDateTime] = Field(
        None, description="Event time; defaults to the server clock"
    )


class AttendanceLogResponse(StandardizedModel):
    id: str
    booking_id: str
    student_id: str
    action: AttendanceAction
    timestamp: UtcDateTime
    recorded_by: Optional[str] = None


class StudentStatsResponse(StandardizedModel):
    student_id: str
    total_classes: int
    attended_classes: int
    attendance_rate: int = Field(..., ge=0, le=100)
    updated_at: Optional[UtcDateTime] = None


class AttendanceRecordResponse(StandardizedModel):
    log: AttendanceLogResponse
    attended_at: Optional[UtcDateTime] = None
    stats: Optional[StudentStatsResponse] = None


class AttendanceListResponse(StandardizedModel):
    items: List[AttendanceLogResponse]
    total: int


class StudentPresenceResponse(StandardizedModel):
    student_id: str
    student_name: Optional[str] = None
    booking_id: str
    status: LiveAttendanceStatus
    joined_at: Optional[UtcDateTime] = None
    left_at: Optional[UtcDateTime] = None
    minutes_attended: int
    events: int


class LiveAttendanceResponse(StandardizedModel):
    teacher_id: str
    scheduled_at: UtcDateTime
    window_start: UtcDateTime
    window_end: UtcDateTime
    present_count: int
    students: List[StudentPresenceResponse]
