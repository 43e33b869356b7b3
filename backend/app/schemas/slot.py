# backend/app/schemas/slot.py
"""Schemas for generated teacher slots."""

from typing import List

from pydantic import Field

from .base import StandardizedModel, UtcDateTime


class SlotResponse(StandardizedModel):
    teacher_id: str
    teacher_name: str
    date_time: UtcDateTime = Field(..., description="Slot start (UTC)")
    available: bool
    booked_count: int = Field(..., ge=0)
    capacity: int = Field(..., ge=1)


class SlotListResponse(StandardizedModel):
    slots: List[SlotResponse]
    total: int
