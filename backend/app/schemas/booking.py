# backend/app/schemas/booking.py
"""
Booking schemas for the Classbook platform.

Create/cancel payloads plus the response shapes. Responses that follow an
external calendar call carry a ``warnings`` list instead of failing.
"""

from typing import Any, List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_REASON_LENGTH, MAX_TOPIC_ID_LENGTH
from ..core.enums import BookingStatus
from .base import StandardizedModel, StrictRequestModel, UtcDateTime, WarningsMixin


class BookingCreate(StrictRequestModel):
    teacher_id: str = Field(..., description="Teacher whose slot is being booked")
    topic_id: str = Field(..., min_length=1, max_length=MAX_TOPIC_ID_LENGTH)
    scheduled_at: UtcDateTime = Field(
        ..., description="Slot start; naive values are read as UTC"
    )


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class BookingResponse(StandardizedModel):
    id: str
    student_id: str
    teacher_id: str
    topic_id: str
    scheduled_at: UtcDateTime
    status: BookingStatus
    attended_at: Optional[UtcDateTime] = None
    completed_at: Optional[UtcDateTime] = None
    cancelled_at: Optional[UtcDateTime] = None
    cancelled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None
    join_link: Optional[str] = None
    created_at: Optional[UtcDateTime] = None

    @classmethod
    def from_booking(cls, booking: Any) -> "BookingResponse":
        return cls.model_validate(booking)


class BookingCreateResponse(WarningsMixin, BookingResponse):
    """Created booking plus any calendar warnings."""

    @classmethod
    def from_result(cls, booking: Any, warnings: List[str]) -> "BookingCreateResponse":
        data = BookingResponse.from_booking(booking).model_dump()
        return cls(**data, warnings=list(warnings))


class BookingCancelResponse(WarningsMixin, StandardizedModel):
    booking: BookingResponse
    refunded: bool
    hours_until_class: float
    package_id: Optional[str] = None


class BookingDeleteResponse(WarningsMixin, StandardizedModel):
    booking_id: str
    deleted: bool = True


class BookingListResponse(StandardizedModel):
    items: List[BookingResponse]
    total: int
