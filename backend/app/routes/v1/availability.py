# backend/app/routes/v1/availability.py
"""
Availability routes - API v1

Recurring weekly teacher windows. Teachers manage their own; admins any.

Endpoints:
    GET / - List windows
    POST / - Create a window
    PATCH /{window_id} - Update a window
    POST /{window_id}/deactivate - Soft-disable a window
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_availability_service, get_current_user
from ...core.constants import ULID_PATH_PATTERN
from ...core.exceptions import DomainException
from ...principal import AuthenticatedUser
from ...schemas.availability import (
    AvailabilityCreate,
    AvailabilityResponse,
    AvailabilityUpdate,
)
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=List[AvailabilityResponse])
async def list_availability(
    teacher_id: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    current_user: AuthenticatedUser = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[AvailabilityResponse]:
    try:
        windows = await asyncio.to_thread(
            availability_service.list_availability,
            current_user,
            teacher_id=teacher_id,
            include_inactive=include_inactive,
        )
        return [AvailabilityResponse.model_validate(w) for w in windows]
    except DomainException as e:
        handle_domain_exception(e)


@router.post("", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def create_availability(
    payload: AvailabilityCreate = Body(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Create a weekly window; overlapping active windows are rejected."""
    try:
        window = await asyncio.to_thread(
            availability_service.create_window,
            current_user,
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
            teacher_id=payload.teacher_id,
        )
        return AvailabilityResponse.model_validate(window)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{window_id}", response_model=AvailabilityResponse)
async def update_availability(
    window_id: str = Path(..., description="Availability ULID", pattern=ULID_PATH_PATTERN),
    payload: AvailabilityUpdate = Body(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        window = await asyncio.to_thread(
            availability_service.update_window,
            current_user,
            window_id,
            **payload.model_dump(exclude_unset=True),
        )
        return AvailabilityResponse.model_validate(window)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{window_id}/deactivate", response_model=AvailabilityResponse)
async def deactivate_availability(
    window_id: str = Path(..., description="Availability ULID", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    """Soft-disable a window; existing bookings stay as they are."""
    try:
        window = await asyncio.to_thread(
            availability_service.deactivate_window, current_user, window_id
        )
        return AvailabilityResponse.model_validate(window)
    except DomainException as e:
        handle_domain_exception(e)
