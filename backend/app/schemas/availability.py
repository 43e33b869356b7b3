# backend/app/schemas/availability.py
"""
Availability schemas for the Classbook platform.

Windows are recurring weekly ranges in the school timezone, stored as
"HH:MM" wall-clock strings with day_of_week 0=Sunday..6=Saturday.
"""

from typing import Any, Optional

from pydantic import Field, field_validator

from ..core.constants import TIME_PATTERN
from .base import StandardizedModel, StrictRequestModel, UtcDateTime


class AvailabilityCreate(StrictRequestModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: str = Field(..., pattern=TIME_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=TIME_PATTERN, examples=["11:00"])
    teacher_id: Optional[str] = Field(
        None, description="Required for admins; teachers always manage their own"
    )

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: str, info: Any) -> str:
        """Ensure end time is after start time."""
        start = info.data.get("start_time") if isinstance(info.data, dict) else None
        if start and v <= start:
            raise ValueError("End time must be after start time")
        return v


class AvailabilityUpdate(StrictRequestModel):
    """Partial update; the service re-validates the merged window."""

    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    is_active: Optional[bool] = None


class AvailabilityResponse(StandardizedModel):
    id: str
    teacher_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_active: bool
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None
