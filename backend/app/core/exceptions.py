# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Classbook platform.

Each exception carries a human-readable message, a machine code and optional
details. The API layer converts them to HTTP responses through
``to_http_exception``; the status code is declared per class.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when request data is well-formed but semantically invalid."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "UNAUTHORIZED"


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"


class PolicyViolationException(DomainException):
    """Raised when a business rule rejects an otherwise valid request."""

    status_code = HTTP_422_UNPROCESSABLE
    default_code = "POLICY_VIOLATION"


class InvalidTransitionException(ConflictException):
    """Raised when a booking is asked to leave a terminal state."""

    default_code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot change booking status from {current} to {target}",
            details={"current_status": current, "requested_status": target},
        )


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    default_code = "SERVICE_ERROR"


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when the student already holds a booking for the slot."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "You already have a booking for this class",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InsufficientNoticeException(PolicyViolationException):
    """Raised when a booking or cancellation is too close to the class start."""

    def __init__(self, message: str, required_hours: float, provided_hours: float):
        super().__init__(
            message=message,
            code="INSUFFICIENT_NOTICE",
            details={
                "required_hours": required_hours,
                "provided_hours": round(provided_hours, 2),
            },
        )


class SlotFullException(PolicyViolationException):
    def __init__(self, capacity: int):
        super().__init__(
            message="This class is full",
            code="SLOT_FULL",
            details={"capacity": capacity},
        )


class NoCreditsException(PolicyViolationException):
    def __init__(self) -> None:
        super().__init__(
            message="No active package with remaining lessons",
            code="NO_CREDITS",
        )


class AvailabilityOverlapException(PolicyViolationException):
    """Raised when an availability window overlaps an existing active window."""

    def __init__(self, day_of_week: int, new_range: str, conflicting_range: str):
        super().__init__(
            message=f"Time slot {new_range} overlaps with existing availability {conflicting_range}",
            code="AVAILABILITY_OVERLAP",
            details={
                "day_of_week": day_of_week,
                "new_slot": new_range,
                "conflicting_slot": conflicting_range,
            },
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class RepositoryIntegrityException(RepositoryException):
    """A unique, check or foreign key constraint rejected a write."""
