"""
Base schemas shared by the request and response DTOs.
"""
from datetime import datetime
from typing import Annotated, List

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from ..core.timezone_utils import as_utc

# Datetimes always leave the API as aware UTC, even when SQLite hands back naive values
UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]


class StandardizedModel(BaseModel):
    """Response base: enums serialize as values, ORM objects are accepted."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class WarningsMixin(BaseModel):
    """Non-fatal problems, e.g. the calendar service was unreachable."""

    warnings: List[str] = Field(default_factory=list)
