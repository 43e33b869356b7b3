# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.attendance_service import AttendanceService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.calendar_gateway import CalendarGateway, build_calendar_client
from ...services.cancellation_service import CancellationService
from ...services.package_service import PackageService
from ...services.slot_service import SlotService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_calendar_gateway_singleton() -> CalendarGateway:
    """Get singleton calendar gateway instance."""
    return CalendarGateway(build_calendar_client())


def get_calendar_gateway() -> CalendarGateway:
    """Get calendar gateway instance for dependency injection."""
    return get_calendar_gateway_singleton()


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    return SlotService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    calendar: CalendarGateway = Depends(get_calendar_gateway),
) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session
        calendar: Gateway to the external calendar service

    Returns:
        BookingService instance
    """
    return BookingService(db, calendar)


def get_cancellation_service(
    db: Session = Depends(get_db),
    calendar: CalendarGateway = Depends(get_calendar_gateway),
) -> CancellationService:
    return CancellationService(db, calendar)


def get_attendance_service(db: Session = Depends(get_db)) -> AttendanceService:
    return AttendanceService(db)


def get_package_service(db: Session = Depends(get_db)) -> PackageService:
    return PackageService(db)
