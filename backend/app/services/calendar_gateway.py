"""CalendarGateway: result-typed wrapper around the calendar client.

Booking and cancellation call the calendar after their transaction commits.
A calendar failure must never undo a booking or a refund, so the gateway
turns CalendarError into a ``CalendarResult`` with ``ok=False`` and the
caller surfaces ``reason`` as a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging
from typing import Optional, Union

from ..core.config import settings
from ..core.timezone_utils import as_utc
from ..integrations.calendar_client import CalendarClient, CalendarError, FakeCalendarClient
from ..models.booking import Booking

logger = logging.getLogger(__name__)

CalendarClientType = Union[CalendarClient, FakeCalendarClient]


@dataclass(frozen=True)
class CalendarResult:
    ok: bool
    event_id: Optional[str] = None
    join_link: Optional[str] = None
    reason: Optional[str] = None


class CalendarGateway:
    def __init__(self, client: CalendarClientType):
        self.client = client

    def create_class_event(self, booking: Booking, teacher_name: str = "") -> CalendarResult:
        start = as_utc(booking.scheduled_at)
        end = start + timedelta(minutes=settings.slot_duration_minutes)
        summary = f"Class with {teacher_name}".strip() if teacher_name else "Class"
        try:
            payload = self.client.create_event(
                summary=summary,
                start=start,
                end=end,
                attendee_ids=[booking.student_id, booking.teacher_id],
                description=f"Topic {booking.topic_id}",
            )
        except CalendarError as e:
            logger.warning(
                "Calendar event creation failed for booking %s: %s",
                booking.id,
                e.message,
                extra={"status_code": e.status_code, "booking_id": booking.id},
            )
            return CalendarResult(ok=False, reason=f"Calendar event creation failed: {e.message}")

        event_id = payload.get("id") or payload.get("eventId")
        if not event_id:
            logger.warning("Calendar service returned no event id for booking %s", booking.id)
            return CalendarResult(ok=False, reason="Calendar service returned no event id")
        return CalendarResult(
            ok=True,
            event_id=str(event_id),
            join_link=payload.get("join_link") or payload.get("joinLink"),
        )

    def delete_class_event(self, event_id: str) -> CalendarResult:
        try:
            self.client.delete_event(event_id)
        except CalendarError as e:
            logger.warning(
                "Calendar event deletion failed for %s: %s",
                event_id,
                e.message,
                extra={"status_code": e.status_code, "event_id": event_id},
            )
            return CalendarResult(
                ok=False, event_id=event_id, reason=f"Calendar event deletion failed: {e.message}"
            )
        return CalendarResult(ok=True, event_id=event_id)


def build_calendar_client() -> CalendarClientType:
    """Real HTTP client unless CALENDAR_FAKE is set."""
    if settings.calendar_fake:
        return FakeCalendarClient()
    return CalendarClient(
        base_url=settings.calendar_api_base_url,
        api_token=settings.calendar_api_token,
        timeout=settings.calendar_timeout_seconds,
    )
