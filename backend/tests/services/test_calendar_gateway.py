"""CalendarGateway turns calendar failures into results."""

from conftest import NEXT_MONDAY_9, make_booking
import pytest

from app.core.config import settings
from app.integrations.calendar_client import CalendarClient, CalendarError, FakeCalendarClient
from app.services.calendar_gateway import CalendarGateway, build_calendar_client


class _NoIdClient(FakeCalendarClient):
    def create_event(self, *, summary, **kwargs):
        return {"joinLink": "https://meet.example.com/x"}


def test_create_returns_event_and_link(db, calendar_gateway, fake_calendar, student, teacher):
    booking = make_booking(db, student, teacher)

    result = calendar_gateway.create_class_event(booking, "Ana Teacher")

    assert result.ok
    assert result.event_id in fake_calendar.events
    assert result.join_link == f"https://meet.example.com/{result.event_id}"
    call = fake_calendar.calls[-1]
    assert call["start"] == NEXT_MONDAY_9
    assert call["attendee_ids"] == [student.id, teacher.id]
    assert call["description"] == "Topic grammar-basics"


def test_create_failure_is_reported_not_raised(db, calendar_gateway, fake_calendar, student, teacher):
    booking = make_booking(db, student, teacher)
    fake_calendar.set_error("create_event", CalendarError("quota exceeded", status_code=429))

    result = calendar_gateway.create_class_event(booking)

    assert not result.ok
    assert result.event_id is None
    assert result.reason == "Calendar event creation failed: quota exceeded"


def test_missing_event_id_is_a_failure(db, student, teacher):
    booking = make_booking(db, student, teacher)

    result = CalendarGateway(_NoIdClient()).create_class_event(booking)

    assert not result.ok
    assert result.reason == "Calendar service returned no event id"


def test_delete(calendar_gateway, fake_calendar):
    event_id = fake_calendar.create_event(summary="Class")["id"]

    assert calendar_gateway.delete_class_event(event_id).ok
    assert event_id not in fake_calendar.events

    fake_calendar.set_error("delete_event", CalendarError("boom", status_code=500))
    failed = calendar_gateway.delete_class_event("evt_1")
    assert not failed.ok
    assert failed.event_id == "evt_1"


@pytest.mark.parametrize("fake,expected", [(True, FakeCalendarClient), (False, CalendarClient)])
def test_build_calendar_client(monkeypatch, fake, expected):
    monkeypatch.setattr(settings, "calendar_fake", fake)
    assert isinstance(build_calendar_client(), expected)
