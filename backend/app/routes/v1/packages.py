# backend/app/routes/v1/packages.py
"""
Package routes - API v1

Endpoints:
    GET /me - Active package summary for the caller
    POST / - Grant a package (admin)
    PATCH /{package_id} - Override package counters (admin)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_current_user, get_package_service, require_roles
from ...core.constants import ULID_PATH_PATTERN
from ...core.enums import RoleName
from ...core.exceptions import DomainException
from ...principal import AuthenticatedUser
from ...schemas.package import (
    PackageCreate,
    PackageOverride,
    PackageResponse,
    PackageSummaryResponse,
)
from ...services.package_service import PackageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["packages-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/me", response_model=PackageSummaryResponse)
async def get_my_package(
    user_id: Optional[str] = Query(None, description="Staff only: look up another user"),
    current_user: AuthenticatedUser = Depends(get_current_user),
    package_service: PackageService = Depends(get_package_service),
) -> PackageSummaryResponse:
    try:
        summary = await asyncio.to_thread(
            package_service.get_active_package_summary, current_user, user_id
        )
        return PackageSummaryResponse.model_validate(summary)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("", response_model=PackageResponse, status_code=status.HTTP_201_CREATED)
async def grant_package(
    payload: PackageCreate = Body(...),
    current_user: AuthenticatedUser = Depends(require_roles(RoleName.ADMIN)),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    try:
        package = await asyncio.to_thread(
            package_service.grant_package,
            current_user,
            payload.user_id,
            payload.total_lessons,
            payload.valid_from,
            payload.valid_until,
        )
        return PackageResponse.model_validate(package)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{package_id}", response_model=PackageResponse)
async def override_package(
    package_id: str = Path(..., description="Package ULID", pattern=ULID_PATH_PATTERN),
    payload: PackageOverride = Body(...),
    current_user: AuthenticatedUser = Depends(require_roles(RoleName.ADMIN)),
    package_service: PackageService = Depends(get_package_service),
) -> PackageResponse:
    """Admin correction of a package; may leave it unbalanced."""
    try:
        package = await asyncio.to_thread(
            package_service.admin_override,
            current_user,
            package_id,
            **payload.model_dump(exclude_unset=True),
        )
        return PackageResponse.model_validate(package)
    except DomainException as e:
        handle_domain_exception(e)
