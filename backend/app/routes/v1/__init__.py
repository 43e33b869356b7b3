# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import (
    attendance,
    availability,
    bookings,
    health,
    packages,
    prometheus,
    slots,
    students,
)

__all__ = [
    "attendance",
    "availability",
    "bookings",
    "health",
    "packages",
    "prometheus",
    "slots",
    "students",
]
