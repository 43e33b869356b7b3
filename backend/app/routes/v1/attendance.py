# backend/app/routes/v1/attendance.py
"""
Attendance routes - API v1

Endpoints:
    POST / - Record a joined/left/rejoined event
    GET / - List attendance logs (newest first)
    GET /live/{booking_id} - Who is in the class right now
"""

import asyncio
from datetime import datetime
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_attendance_service, get_current_user
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, ULID_PATH_PATTERN
from ...core.exceptions import DomainException
from ...principal import AuthenticatedUser
from ...schemas.attendance import (
    AttendanceCreate,
    AttendanceListResponse,
    AttendanceLogResponse,
    AttendanceRecordResponse,
    LiveAttendanceResponse,
    StudentPresenceResponse,
    StudentStatsResponse,
)
from ...services.attendance_service import AttendanceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attendance-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("", response_model=AttendanceRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_attendance(
    payload: AttendanceCreate = Body(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
    attendance_service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceRecordResponse:
    try:
        result = await asyncio.to_thread(
            attendance_service.record_attendance,
            current_user,
            payload.booking_id,
            payload.student_id,
            payload.action,
            payload.timestamp,
        )
        return AttendanceRecordResponse(
            log=AttendanceLogResponse.model_validate(result.log),
            attended_at=result.booking.attended_at,
            stats=StudentStatsResponse.model_validate(result.stats) if result.stats else None,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=AttendanceListResponse)
async def list_attendance(
    booking_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    current_user: AuthenticatedUser = Depends(get_current_user),
    attendance_service: AttendanceService = Depends(get_attendance_service),
) -> AttendanceListResponse:
    try:
        logs = await asyncio.to_thread(
            attendance_service.list_attendance,
            current_user,
            booking_id=booking_id,
            student_id=student_id,
            start=start,
            end=end,
            limit=limit,
        )
        items = [AttendanceLogResponse.model_validate(log) for log in logs]
        return AttendanceListResponse(items=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/live/{booking_id}", response_model=LiveAttendanceResponse)
async def live_attendance(
    booking_id: str = Path(..., description="Any booking in the class", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(get_current_user),
    attendance_service: AttendanceService = Depends(get_attendance_service),
) -> LiveAttendanceResponse:
    try:
        live = await asyncio.to_thread(
            attendance_service.live_attendance, current_user, booking_id
        )
        return LiveAttendanceResponse(
            teacher_id=live.teacher_id,
            scheduled_at=live.scheduled_at,
            window_start=live.window_start,
            window_end=live.window_end,
            present_count=live.present_count,
            students=[StudentPresenceResponse.model_validate(s) for s in live.students],
        )
    except DomainException as e:
        handle_domain_exception(e)
