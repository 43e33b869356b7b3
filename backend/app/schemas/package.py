# backend/app/schemas/package.py
"""Lesson package schemas."""

from typing import Any, Optional

from pydantic import Field, field_validator

from .base import StandardizedModel, StrictRequestModel, UtcDateTime


class PackageCreate(StrictRequestModel):
    user_id: str = Field(..., description="Student receiving the package")
    total_lessons: int = Field(..., gt=0)
    valid_from: UtcDateTime
    valid_until: UtcDateTime

    @field_validator("valid_until")
    @classmethod
    def validate_period(cls, v: Any, info: Any) -> Any:
        start = info.data.get("valid_from") if isinstance(info.data, dict) else None
        if start and v <= start:
            raise ValueError("valid_until must be after valid_from")
        return v


class PackageOverride(StrictRequestModel):
    """Admin correction; any subset of fields. May leave the package unbalanced."""

    total_lessons: Optional[int] = Field(None, ge=0)
    used_lessons: Optional[int] = None
    remaining_lessons: Optional[int] = None
    valid_until: Optional[UtcDateTime] = None


class PackageResponse(StandardizedModel):
    id: str
    user_id: str
    total_lessons: int
    used_lessons: int
    remaining_lessons: int
    valid_from: UtcDateTime
    valid_until: UtcDateTime
    created_at: Optional[UtcDateTime] = None


class PackageSummaryResponse(StandardizedModel):
    """Dashboard view; all zeros when the student has no active package."""

    package_id: Optional[str] = None
    total_lessons: int
    used_lessons: int
    remaining_lessons: int
    valid_until: Optional[UtcDateTime] = None
