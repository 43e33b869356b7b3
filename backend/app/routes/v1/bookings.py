# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and CancellationService.

Endpoints:
    GET / - List bookings visible to the caller
    POST / - Book a slot (spends one credit)
    GET /{booking_id} - Booking details
    DELETE /{booking_id} - Admin hard delete
    POST /{booking_id}/cancel - Cancel a booking (refund per policy)
    POST /{booking_id}/complete - Mark booking as completed
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_service,
    get_cancellation_service,
    get_current_user,
)
from ...core.constants import ULID_PATH_PATTERN
from ...core.enums import BookingStatus
from ...core.exceptions import DomainException
from ...principal import AuthenticatedUser
from ...schemas.booking import (
    BookingCancel,
    BookingCancelResponse,
    BookingCreate,
    BookingCreateResponse,
    BookingDeleteResponse,
    BookingListResponse,
    BookingResponse,
)
from ...services.booking_service import BookingService
from ...services.cancellation_service import CancellationService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Collection routes
# ============================================================================


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    upcoming: bool = Query(False, description="Only classes that have not started"),
    student_id: Optional[str] = Query(None),
    teacher_id: Optional[str] = Query(None),
    current_user: AuthenticatedUser = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    try:
        bookings = await asyncio.to_thread(
            booking_service.list_bookings,
            current_user,
            status=status_filter,
            upcoming=upcoming,
            student_id=student_id,
            teacher_id=teacher_id,
        )
        items = [BookingResponse.from_booking(b) for b in bookings]
        return BookingListResponse(items=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Already booked"}, 422: {"description": "Policy violation"}},
)
async def create_booking(
    payload: BookingCreate = Body(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """Book the calling student into a teacher slot."""
    try:
        result = await asyncio.to_thread(
            booking_service.create_booking,
            current_user,
            payload.teacher_id,
            payload.topic_id,
            payload.scheduled_at,
        )
        return BookingCreateResponse.from_result(result.booking, result.warnings)
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Single booking routes
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, current_user, booking_id)
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{booking_id}", response_model=BookingDeleteResponse)
async def delete_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingDeleteResponse:
    """Admin override. Attendance logs go with the booking; no credit is returned."""
    try:
        result = await asyncio.to_thread(
            booking_service.delete_booking, current_user, booking_id
        )
        return BookingDeleteResponse(booking_id=booking_id, warnings=result.warnings)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingCancelResponse,
    responses={
        404: {"description": "Booking not found"},
        409: {"description": "Booking is not scheduled"},
        422: {"description": "Inside the cancellation notice window"},
    },
)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[BookingCancel] = Body(None),
    current_user: AuthenticatedUser = Depends(get_current_user),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> BookingCancelResponse:
    """Cancel a booking."""
    try:
        result = await asyncio.to_thread(
            cancellation_service.cancel_booking,
            booking_id,
            current_user,
            cancel_data.reason if cancel_data else None,
        )
        return BookingCancelResponse(
            booking=BookingResponse.from_booking(result.booking),
            refunded=result.refunded,
            hours_until_class=round(result.hours_until_class, 2),
            package_id=result.package_id,
            warnings=result.warnings,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def complete_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Mark booking as completed."""
    try:
        booking = await asyncio.to_thread(
            booking_service.complete_booking, current_user, booking_id
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)
