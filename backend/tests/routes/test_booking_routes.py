"""HTTP tests for /api/v1/bookings."""

from conftest import auth_headers_for, make_booking, next_week_class_start
from fastapi import status
import pytest

from app.errors import PROBLEM_MEDIA_TYPE
from app.integrations.calendar_client import CalendarError
from app.models.booking import Booking
from app.models.package import Package

BOOKINGS_URL = "/api/v1/bookings"


def _create_payload(teacher, start):
    return {"teacher_id": teacher.id, "topic_id": "travel-phrases", "scheduled_at": start.isoformat()}


@pytest.fixture
def booked(client, student, teacher, class_start):
    response = client.post(
        BOOKINGS_URL, json=_create_payload(teacher, class_start), headers=auth_headers_for(student)
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def _package_of(db, student) -> Package:
    package = db.query(Package).filter_by(user_id=student.id).one()
    db.refresh(package)
    return package


class TestCreate:
    def test_create_booking(self, db, booked, student, teacher, class_start):
        assert booked["status"] == "SCHEDULED"
        assert booked["teacher_id"] == teacher.id
        assert booked["student_id"] == student.id
        assert booked["warnings"] == []
        assert booked["join_link"].startswith("https://meet.example.com/")
        assert booked["scheduled_at"].startswith(class_start.strftime("%Y-%m-%dT09:00:00"))
        assert _package_of(db, student).remaining_lessons == 9

    def test_duplicate_is_conflict_problem(self, client, booked, student, teacher, class_start):
        response = client.post(
            BOOKINGS_URL, json=_create_payload(teacher, class_start), headers=auth_headers_for(student)
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.headers["content-type"].startswith(PROBLEM_MEDIA_TYPE)
        body = response.json()
        assert body["code"] == "BOOKING_CONFLICT"
        assert body["status"] == 409
        assert body["instance"] == BOOKINGS_URL

    def test_unavailable_time_is_422(self, client, student, teacher, class_start):
        response = client.post(
            BOOKINGS_URL,
            json=_create_payload(teacher, next_week_class_start(days_ahead=8)),
            headers=auth_headers_for(student),
        )
        assert response.status_code == 422
        assert response.json()["code"] == "TEACHER_NOT_AVAILABLE"

    def test_calendar_outage_returns_warning(self, client, fake_calendar, student, teacher, class_start):
        fake_calendar.set_error("create_event", CalendarError("unavailable", status_code=503))

        response = client.post(
            BOOKINGS_URL, json=_create_payload(teacher, class_start), headers=auth_headers_for(student)
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["join_link"] is None
        assert response.json()["warnings"] == ["Calendar event creation failed: unavailable"]

    def test_requires_token(self, client, teacher, class_start):
        response = client.post(BOOKINGS_URL, json=_create_payload(teacher, class_start))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "UNAUTHORIZED"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_bad_token(self, client, teacher, class_start):
        response = client.post(
            BOOKINGS_URL,
            json=_create_payload(teacher, class_start),
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_fields_rejected(self, client, student, teacher, class_start):
        payload = {**_create_payload(teacher, class_start), "price": 10}

        response = client.post(BOOKINGS_URL, json=payload, headers=auth_headers_for(student))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"]


class TestCancel:
    def test_student_cancel_refunds(self, client, db, booked, student):
        response = client.post(
            f"{BOOKINGS_URL}/{booked['id']}/cancel",
            json={"reason": "  travelling  "},
            headers=auth_headers_for(student),
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["refunded"] is True
        assert body["booking"]["status"] == "CANCELLED"
        assert body["booking"]["cancellation_reason"] == "travelling"
        assert body["hours_until_class"] > 6
        assert _package_of(db, student).remaining_lessons == 10

    def test_cancel_without_body(self, client, booked, teacher):
        response = client.post(
            f"{BOOKINGS_URL}/{booked['id']}/cancel", headers=auth_headers_for(teacher)
        )
        assert response.status_code == status.HTTP_200_OK

    def test_second_cancel_conflicts(self, client, booked, student):
        url = f"{BOOKINGS_URL}/{booked['id']}/cancel"
        client.post(url, headers=auth_headers_for(student))

        response = client.post(url, headers=auth_headers_for(student))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "INVALID_TRANSITION"

    def test_stranger_forbidden(self, client, booked, other_student):
        response = client.post(
            f"{BOOKINGS_URL}/{booked['id']}/cancel", headers=auth_headers_for(other_student)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "FORBIDDEN"


class TestReadCompleteDelete:
    def test_list_and_get(self, client, booked, student, other_student):
        listed = client.get(BOOKINGS_URL, headers=auth_headers_for(student)).json()
        assert listed["total"] == 1
        assert listed["items"][0]["id"] == booked["id"]

        assert client.get(BOOKINGS_URL, headers=auth_headers_for(other_student)).json()["total"] == 0

        single = client.get(f"{BOOKINGS_URL}/{booked['id']}", headers=auth_headers_for(student))
        assert single.json()["topic_id"] == "travel-phrases"

    def test_list_status_filter(self, client, db, admin, student, teacher):
        make_booking(db, student, teacher)
        response = client.get(
            BOOKINGS_URL, params={"status": "CANCELLED"}, headers=auth_headers_for(admin)
        )
        assert response.json()["total"] == 0

    def test_malformed_id_is_validation_error(self, client, student):
        response = client.get(f"{BOOKINGS_URL}/not-a-ulid", headers=auth_headers_for(student))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_teacher_completes(self, client, booked, teacher):
        response = client.post(
            f"{BOOKINGS_URL}/{booked['id']}/complete", headers=auth_headers_for(teacher)
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "COMPLETED"
        assert response.json()["completed_at"] is not None

    def test_admin_delete(self, client, db, booked, admin, student):
        forbidden = client.delete(f"{BOOKINGS_URL}/{booked['id']}", headers=auth_headers_for(student))
        assert forbidden.status_code == status.HTTP_403_FORBIDDEN

        response = client.delete(f"{BOOKINGS_URL}/{booked['id']}", headers=auth_headers_for(admin))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"booking_id": booked["id"], "deleted": True, "warnings": []}
        assert db.get(Booking, booked["id"]) is None
