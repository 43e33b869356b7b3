"""External service integrations for the Classbook platform."""

from .calendar_client import CalendarClient, CalendarError, FakeCalendarClient

__all__ = ["CalendarClient", "CalendarError", "FakeCalendarClient"]
