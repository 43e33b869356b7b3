# backend/app/routes/v1/students.py
"""
Student statistics routes - API v1

Endpoints:
    GET /{student_id}/stats - Stored attendance statistics
    POST /{student_id}/stats/recompute - Rebuild statistics from bookings (admin)
"""

import asyncio
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.params import Path

from ...api.dependencies import get_attendance_service, get_current_user, require_roles
from ...core.constants import ULID_PATH_PATTERN
from ...core.enums import RoleName
from ...core.exceptions import DomainException
from ...principal import AuthenticatedUser
from ...schemas.attendance import StudentStatsResponse
from ...services.attendance_service import AttendanceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["students-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/{student_id}/stats", response_model=StudentStatsResponse)
async def get_student_stats(
    student_id: str = Path(..., description="Student ULID", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(get_current_user),
    attendance_service: AttendanceService = Depends(get_attendance_service),
) -> StudentStatsResponse:
    try:
        stats = await asyncio.to_thread(
            attendance_service.get_student_stats, current_user, student_id
        )
        return StudentStatsResponse.model_validate(stats)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{student_id}/stats/recompute", response_model=StudentStatsResponse)
async def recompute_student_stats(
    student_id: str = Path(..., description="Student ULID", pattern=ULID_PATH_PATTERN),
    current_user: AuthenticatedUser = Depends(require_roles(RoleName.ADMIN)),
    attendance_service: AttendanceService = Depends(get_attendance_service),
) -> StudentStatsResponse:
    try:
        stats = await asyncio.to_thread(
            attendance_service.rebuild_student_stats, current_user, student_id
        )
        return StudentStatsResponse.model_validate(stats)
    except DomainException as e:
        handle_domain_exception(e)
