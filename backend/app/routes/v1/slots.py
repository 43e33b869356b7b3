# backend/app/routes/v1/slots.py
"""
Slot routes - API v1

    GET / - Generated slots over a school-local date range
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_current_user, get_slot_service
from ...core.exceptions import DomainException
from ...principal import AuthenticatedUser
from ...schemas.slot import SlotListResponse, SlotResponse
from ...services.slot_service import SlotService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["slots-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=SlotListResponse)
async def list_slots(
    start_date: date = Query(..., description="First school-local date (inclusive)"),
    end_date: date = Query(..., description="Last school-local date (inclusive)"),
    teacher_id: Optional[str] = Query(None),
    current_user: AuthenticatedUser = Depends(get_current_user),
    slot_service: SlotService = Depends(get_slot_service),
) -> SlotListResponse:
    """Bookable and full slots for every active teacher window in the range."""
    try:
        slots = await asyncio.to_thread(
            slot_service.generate_slots, start_date, end_date, teacher_id
        )
        items = [SlotResponse.model_validate(slot) for slot in slots]
        return SlotListResponse(slots=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)
