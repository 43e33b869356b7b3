# backend/app/services/cancellation_service.py
"""
Cancellation and credit-refund engine.

Policy (the only place it lives):
- Students must cancel at least CANCELLATION_NOTICE_HOURS before class;
  inside that window the request is rejected and nothing changes.
- A permitted student cancellation returns one credit.
- Teacher and admin cancellations always return one credit, whatever the
  lead time.
- The credit goes to exactly one package: the student's active one.

The status change and the credit move commit together. The calendar event is
deleted afterwards; a calendar failure becomes a warning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BookingStatus, RoleName
from ..core.exceptions import (
    ForbiddenException,
    InsufficientNoticeException,
    InvalidTransitionException,
    NotFoundException,
)
from ..core.timezone_utils import hours_until
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import AuthenticatedUser
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .calendar_gateway import CalendarGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationDecision:
    allowed: bool
    refund: bool
    reason: Optional[str] = None


def evaluate_cancellation(
    actor_role: RoleName, hours_until_class: float, notice_hours: float
) -> CancellationDecision:
    """Decide whether a cancellation may proceed and whether it earns a refund."""
    if actor_role == RoleName.STUDENT and hours_until_class < notice_hours:
        return CancellationDecision(
            allowed=False,
            refund=False,
            reason=f"Cancellations require at least {notice_hours:g} hours notice",
        )
    return CancellationDecision(allowed=True, refund=True)


@dataclass
class CancellationResult:
    booking: Booking
    refunded: bool
    hours_until_class: float
    package_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


class CancellationService(BaseService):
    def __init__(self, db: Session, calendar: CalendarGateway, **kwargs):
        super().__init__(db, **kwargs)
        self.calendar = calendar
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.package_repository = RepositoryFactory.create_package_repository(db)

    def _check_can_cancel(self, actor: AuthenticatedUser, booking: Booking) -> None:
        if actor.is_admin:
            return
        if actor.is_student and booking.student_id == actor.id:
            return
        if actor.is_teacher and booking.teacher_id == actor.id:
            return
        raise ForbiddenException("You don't have permission to cancel this booking")

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        actor: AuthenticatedUser,
        reason: Optional[str] = None,
    ) -> CancellationResult:
        """
        Cancel a booking and return the credit when policy allows.

        Raises:
            NotFoundException: Unknown booking
            ForbiddenException: Caller is neither a party to the booking nor admin
            InvalidTransitionException: Booking is already COMPLETED or CANCELLED
            InsufficientNoticeException: Student inside the notice window
        """
        now = self.now()
        warnings: List[str] = []
        refunded = False
        package_id: Optional[str] = None

        with self.transaction():
            booking = self.booking_repository.get_for_update(booking_id)
            if booking is None:
                raise NotFoundException("Booking not found")
            self._check_can_cancel(actor, booking)
            if not booking.can_transition_to(BookingStatus.CANCELLED):
                raise InvalidTransitionException(booking.status, BookingStatus.CANCELLED.value)

            lead_hours = hours_until(booking.scheduled_at, now)
            decision = evaluate_cancellation(
                actor.role, lead_hours, settings.cancellation_notice_hours
            )
            if not decision.allowed:
                raise InsufficientNoticeException(
                    decision.reason or "Cancellation not allowed",
                    required_hours=settings.cancellation_notice_hours,
                    provided_hours=lead_hours,
                )

            # Conditional UPDATE: a concurrent cancel/complete makes this a no-op
            if not self.booking_repository.cancel_if_scheduled(
                booking.id, actor.id, now, reason
            ):
                self.booking_repository.refresh(booking)
                raise InvalidTransitionException(booking.status, BookingStatus.CANCELLED.value)

            if decision.refund:
                package = self.package_repository.get_active_for_user(
                    booking.student_id, now, lock=True
                )
                if package is None:
                    warnings.append("No active package found; lesson credit was not returned")
                else:
                    refunded = self.package_repository.refund_credit(package.id)
                    package_id = package.id

            event_ref = booking.external_event_ref

        prometheus_metrics.inc_cancellation(actor.role.value, refunded)
        self.log_operation(
            "cancel_booking",
            booking_id=booking.id,
            actor_id=actor.id,
            actor_role=actor.role.value,
            hours_until_class=round(lead_hours, 2),
            refunded=refunded,
            package_id=package_id,
        )
        for warning in warnings:
            self.logger.warning("Booking %s cancellation: %s", booking.id, warning)

        if event_ref:
            result = self.calendar.delete_class_event(event_ref)
            if not result.ok:
                prometheus_metrics.inc_calendar_failure("delete_event")
                warnings.append(result.reason or "Calendar event could not be deleted")

        return CancellationResult(
            booking=booking,
            refunded=refunded,
            hours_until_class=lead_hours,
            package_id=package_id,
            warnings=warnings,
        )
