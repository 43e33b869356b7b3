# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_user, require_roles
from .database import get_db
from .services import (
    get_attendance_service,
    get_availability_service,
    get_booking_service,
    get_calendar_gateway,
    get_cancellation_service,
    get_package_service,
    get_slot_service,
)

__all__ = [
    # Auth
    "get_current_user",
    "require_roles",
    # Database
    "get_db",
    # Services
    "get_attendance_service",
    "get_availability_service",
    "get_booking_service",
    "get_calendar_gateway",
    "get_cancellation_service",
    "get_package_service",
    "get_slot_service",
]
