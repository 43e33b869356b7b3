"""Booking creation, listing, completion and the admin delete override."""

from datetime import datetime, timedelta

from conftest import NEXT_MONDAY_9, actor_for, make_booking, make_package, make_user, make_window
import pytest
import pytz

from app.core.config import settings
from app.core.enums import BookingStatus, RoleName
from app.core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InsufficientNoticeException,
    InvalidTransitionException,
    NoCreditsException,
    NotFoundException,
    PolicyViolationException,
    SlotFullException,
)
from app.integrations.calendar_client import CalendarError
from app.models.attendance import StudentStats
from app.models.booking import Booking
from app.services.booking_service import BookingService


@pytest.fixture
def booking_service(service_factory, calendar_gateway) -> BookingService:
    return service_factory(BookingService, calendar_gateway)


def _book(service: BookingService, student, teacher, scheduled_at: datetime = NEXT_MONDAY_9):
    return service.create_booking(
        actor_for(student), teacher_id=teacher.id, topic_id="past-tense", scheduled_at=scheduled_at
    )


class TestCreateBooking:
    def test_books_and_spends_one_credit(
        self, db, booking_service, fake_calendar, student, teacher, monday_window, package
    ):
        result = _book(booking_service, student, teacher)

        booking = result.booking
        assert result.warnings == []
        assert booking.status == BookingStatus.SCHEDULED.value
        assert booking.student_id == student.id
        assert booking.topic_id == "past-tense"

        db.refresh(package)
        assert (package.used_lessons, package.remaining_lessons) == (1, 9)

        assert booking.external_event_ref in fake_calendar.events
        assert booking.join_link.endswith(booking.external_event_ref)
        event = fake_calendar.events[booking.external_event_ref]
        assert event["summary"] == "Class with Ana Teacher"
        assert event["end"] - event["start"] == timedelta(minutes=settings.slot_duration_minutes)

    def test_calendar_failure_keeps_booking_and_warns(
        self, db, booking_service, fake_calendar, student, teacher, monday_window, package
    ):
        fake_calendar.set_error("create_event", CalendarError("calendar down", status_code=503))

        result = _book(booking_service, student, teacher)

        assert len(result.warnings) == 1
        assert "calendar down" in result.warnings[0]
        stored = db.get(Booking, result.booking.id)
        assert stored is not None
        assert stored.external_event_ref is None
        db.refresh(package)
        assert package.remaining_lessons == 9

    def test_only_students_may_book(self, booking_service, teacher, monday_window):
        with pytest.raises(ForbiddenException):
            _book(booking_service, teacher, teacher)

    def test_within_lead_time_rejected(
        self, clock, booking_service, student, teacher, monday_window, package
    ):
        clock.set(NEXT_MONDAY_9 - timedelta(minutes=30))

        with pytest.raises(InsufficientNoticeException) as exc_info:
            _book(booking_service, student, teacher)
        assert exc_info.value.code == "INSUFFICIENT_NOTICE"

    def test_time_outside_windows_rejected(self, booking_service, student, teacher, monday_window, package):
        with pytest.raises(PolicyViolationException) as exc_info:
            _book(booking_service, student, teacher, NEXT_MONDAY_9 + timedelta(hours=2))
        assert exc_info.value.code == "TEACHER_NOT_AVAILABLE"

    def test_time_off_the_slot_grid_rejected(
        self, booking_service, student, teacher, monday_window, package
    ):
        with pytest.raises(PolicyViolationException) as exc_info:
            _book(booking_service, student, teacher, NEXT_MONDAY_9 + timedelta(minutes=30))
        assert exc_info.value.code == "TEACHER_NOT_AVAILABLE"

    def test_closed_day_rejected(
        self, monkeypatch, booking_service, student, teacher, monday_window, package
    ):
        monkeypatch.setattr(settings, "closed_weekdays", {1})

        with pytest.raises(PolicyViolationException) as exc_info:
            _book(booking_service, student, teacher)
        assert exc_info.value.code == "CLOSED_DAY"

    def test_unknown_teacher(self, booking_service, student, monday_window, package):
        with pytest.raises(NotFoundException):
            booking_service.create_booking(
                actor_for(student),
                teacher_id="01HZZZZZZZZZZZZZZZZZZZZZZZ",
                topic_id="t",
                scheduled_at=NEXT_MONDAY_9,
            )

    def test_without_package_rejected(self, db, booking_service, student, teacher, monday_window):
        with pytest.raises(NoCreditsException) as exc_info:
            _book(booking_service, student, teacher)
        assert exc_info.value.code == "NO_CREDITS"
        assert db.query(Booking).count() == 0

    def test_exhausted_package_rejected(self, db, booking_service, student, teacher, monday_window):
        make_package(db, student, total=5, used=5)
        with pytest.raises(NoCreditsException):
            _book(booking_service, student, teacher)

    def test_expired_package_does_not_count(self, db, booking_service, student, teacher, monday_window):
        make_package(db, student, valid_until=datetime(2026, 3, 1, tzinfo=pytz.UTC))
        with pytest.raises(NoCreditsException):
            _book(booking_service, student, teacher)

    def test_newest_active_package_is_charged(
        self, db, booking_service, student, teacher, monday_window
    ):
        older = make_package(db, student, total=10, created_at=datetime(2026, 1, 1, tzinfo=pytz.UTC))
        newer = make_package(db, student, total=4, created_at=datetime(2026, 2, 1, tzinfo=pytz.UTC))

        _book(booking_service, student, teacher)

        db.refresh(older)
        db.refresh(newer)
        assert older.used_lessons == 0
        assert (newer.used_lessons, newer.remaining_lessons) == (1, 3)

    def test_duplicate_booking_rejected_without_charge(
        self, db, booking_service, student, teacher, monday_window, package
    ):
        _book(booking_service, student, teacher)

        with pytest.raises(BookingConflictException) as exc_info:
            _book(booking_service, student, teacher)
        assert exc_info.value.code == "BOOKING_CONFLICT"
        db.refresh(package)
        assert package.used_lessons == 1

    def test_rebook_after_cancellation_allowed(
        self, db, booking_service, student, teacher, monday_window, package
    ):
        make_booking(db, student, teacher, status=BookingStatus.CANCELLED)

        result = _book(booking_service, student, teacher)
        assert result.booking.status == BookingStatus.SCHEDULED.value

    def test_full_slot_rejected(self, db, booking_service, student, teacher, monday_window, package):
        for _ in range(settings.slot_capacity):
            make_booking(db, make_user(db, RoleName.STUDENT), teacher)

        with pytest.raises(SlotFullException) as exc_info:
            _book(booking_service, student, teacher)
        assert exc_info.value.code == "SLOT_FULL"
        db.refresh(package)
        assert package.used_lessons == 0

    def test_capacity_is_per_teacher(
        self, db, booking_service, student, teacher, other_teacher, monday_window, package
    ):
        make_window(db, other_teacher, day_of_week=1)
        for _ in range(settings.slot_capacity):
            make_booking(db, make_user(db, RoleName.STUDENT), teacher)

        result = _book(booking_service, student, other_teacher)
        assert result.booking.teacher_id == other_teacher.id


class TestListAndGet:
    def test_students_see_only_their_bookings(
        self, db, booking_service, student, other_student, teacher
    ):
        mine = make_booking(db, student, teacher)
        make_booking(db, other_student, teacher)

        listed = booking_service.list_bookings(actor_for(student), student_id=other_student.id)
        assert [b.id for b in listed] == [mine.id]

    def test_teacher_sees_their_classes(self, db, booking_service, student, teacher, other_teacher):
        make_booking(db, student, teacher)
        make_booking(db, student, other_teacher, scheduled_at=NEXT_MONDAY_9 + timedelta(hours=1))

        listed = booking_service.list_bookings(actor_for(teacher))
        assert {b.teacher_id for b in listed} == {teacher.id}

    def test_admin_filters_and_upcoming(self, db, clock, booking_service, admin, student, teacher):
        past = make_booking(
            db, student, teacher, scheduled_at=clock() - timedelta(days=1), status=BookingStatus.COMPLETED
        )
        future = make_booking(db, student, teacher)

        everything = booking_service.list_bookings(actor_for(admin))
        assert [b.id for b in everything] == [past.id, future.id]

        upcoming = booking_service.list_bookings(actor_for(admin), upcoming=True)
        assert [b.id for b in upcoming] == [future.id]

        completed = booking_service.list_bookings(actor_for(admin), status=BookingStatus.COMPLETED)
        assert [b.id for b in completed] == [past.id]

    def test_get_booking_hidden_from_strangers(self, db, booking_service, student, other_student, teacher):
        booking = make_booking(db, student, teacher)

        assert booking_service.get_booking(actor_for(teacher), booking.id).id == booking.id
        with pytest.raises(ForbiddenException):
            booking_service.get_booking(actor_for(other_student), booking.id)
        with pytest.raises(NotFoundException):
            booking_service.get_booking(actor_for(student), "missing")


class TestCompleteBooking:
    def test_teacher_completes_and_stats_follow(self, db, booking_service, student, teacher):
        booking = make_booking(db, student, teacher, attended_at=NEXT_MONDAY_9)

        completed = booking_service.complete_booking(actor_for(teacher), booking.id)

        assert completed.status == BookingStatus.COMPLETED.value
        assert completed.completed_at is not None
        stats = db.get(StudentStats, student.id)
        assert (stats.total_classes, stats.attended_classes, stats.attendance_rate) == (1, 1, 100)

    def test_completion_does_not_mark_attendance(self, db, booking_service, student, teacher):
        booking = make_booking(db, student, teacher)

        booking_service.complete_booking(actor_for(teacher), booking.id)

        assert booking.attended_at is None
        stats = db.get(StudentStats, student.id)
        assert (stats.total_classes, stats.attended_classes, stats.attendance_rate) == (1, 0, 0)

    def test_student_and_other_teacher_cannot_complete(
        self, db, booking_service, student, teacher, other_teacher
    ):
        booking = make_booking(db, student, teacher)
        for actor in (student, other_teacher):
            with pytest.raises(ForbiddenException):
                booking_service.complete_booking(actor_for(actor), booking.id)

    def test_terminal_booking_cannot_be_completed(self, db, booking_service, admin, student, teacher):
        booking = make_booking(db, student, teacher, status=BookingStatus.CANCELLED)
        with pytest.raises(InvalidTransitionException):
            booking_service.complete_booking(actor_for(admin), booking.id)


class TestDeleteBooking:
    def test_admin_delete_removes_booking_and_event(
        self, db, booking_service, fake_calendar, admin, student, teacher, monday_window, package
    ):
        booking = _book(booking_service, student, teacher).booking
        event_ref = booking.external_event_ref

        result = booking_service.delete_booking(actor_for(admin), booking.id)

        assert result.warnings == []
        assert db.get(Booking, booking.id) is None
        assert event_ref not in fake_calendar.events
        # no refund on the override path
        db.refresh(package)
        assert package.used_lessons == 1

    def test_non_admin_cannot_delete(self, db, booking_service, student, teacher):
        booking = make_booking(db, student, teacher)
        with pytest.raises(ForbiddenException):
            booking_service.delete_booking(actor_for(teacher), booking.id)

    def test_delete_recomputes_stats(self, db, booking_service, admin, student, teacher):
        booking = make_booking(
            db, student, teacher, status=BookingStatus.COMPLETED, attended_at=NEXT_MONDAY_9
        )
        booking_service.attendance_service.recompute_student_stats(student.id)

        booking_service.delete_booking(actor_for(admin), booking.id)

        stats = db.get(StudentStats, student.id)
        assert (stats.total_classes, stats.attended_classes) == (0, 0)
