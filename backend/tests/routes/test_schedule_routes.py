"""HTTP tests for slots and availability."""

from datetime import timedelta

from conftest import auth_headers_for, make_booking, make_window
from fastapi import status

from app.core.timezone_utils import utc_now

SLOTS_URL = "/api/v1/slots"
AVAILABILITY_URL = "/api/v1/availability"


class TestSlots:
    def test_lists_week_of_slots(self, client, student, teacher, class_start):
        day = class_start.date().isoformat()

        response = client.get(
            SLOTS_URL, params={"start_date": day, "end_date": day}, headers=auth_headers_for(student)
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["total"] == 2
        first = body["slots"][0]
        assert first["teacher_id"] == teacher.id
        assert first["teacher_name"] == "Ana Teacher"
        assert first["available"] is True
        assert (first["booked_count"], first["capacity"]) == (0, 10)

    def test_booked_seat_is_counted(self, client, db, student, teacher, class_start):
        make_booking(db, student, teacher, scheduled_at=class_start)
        day = class_start.date().isoformat()

        body = client.get(
            SLOTS_URL, params={"start_date": day, "end_date": day}, headers=auth_headers_for(student)
        ).json()

        assert body["slots"][0]["booked_count"] == 1

    def test_range_validation(self, client, student):
        today = utc_now().date()
        response = client.get(
            SLOTS_URL,
            params={"start_date": today.isoformat(), "end_date": (today - timedelta(days=1)).isoformat()},
            headers=auth_headers_for(student),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_missing_dates(self, client, student):
        response = client.get(SLOTS_URL, headers=auth_headers_for(student))
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAvailability:
    def test_teacher_creates_and_lists(self, client, teacher):
        headers = auth_headers_for(teacher)

        created = client.post(
            AVAILABILITY_URL,
            json={"day_of_week": 3, "start_time": "13:00", "end_time": "15:00"},
            headers=headers,
        )

        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["teacher_id"] == teacher.id
        listed = client.get(AVAILABILITY_URL, headers=headers).json()
        assert [w["id"] for w in listed] == [created.json()["id"]]

    def test_end_before_start_is_400(self, client, teacher):
        response = client.post(
            AVAILABILITY_URL,
            json={"day_of_week": 3, "start_time": "15:00", "end_time": "13:00"},
            headers=auth_headers_for(teacher),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_overlap_is_422(self, client, db, teacher):
        make_window(db, teacher, day_of_week=3, start_time="13:00", end_time="15:00")

        response = client.post(
            AVAILABILITY_URL,
            json={"day_of_week": 3, "start_time": "14:00", "end_time": "16:00"},
            headers=auth_headers_for(teacher),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "AVAILABILITY_OVERLAP"
        assert body["errors"]["conflicting_slot"] == "13:00-15:00"

    def test_student_forbidden(self, client, student):
        response = client.post(
            AVAILABILITY_URL,
            json={"day_of_week": 3, "start_time": "13:00", "end_time": "15:00"},
            headers=auth_headers_for(student),
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_patch_and_deactivate(self, client, db, teacher):
        window = make_window(db, teacher, day_of_week=2)
        headers = auth_headers_for(teacher)

        patched = client.patch(
            f"{AVAILABILITY_URL}/{window.id}", json={"end_time": "12:00"}, headers=headers
        )
        assert patched.status_code == status.HTTP_200_OK
        assert patched.json()["end_time"] == "12:00"

        deactivated = client.post(f"{AVAILABILITY_URL}/{window.id}/deactivate", headers=headers)
        assert deactivated.json()["is_active"] is False
        assert client.get(AVAILABILITY_URL, headers=headers).json() == []
