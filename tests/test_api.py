from datetime import date

import pytest

from src.healthcare_staffing.healthcare_staffing.core.enums import ShiftDepartment, ShiftType
from src.healthcare_staffing.healthcare_staffing.main import create_app
from src.healthcare_staffing.healthcare_staffing.shifts.model import Shift, StaffSet
from tests.conftest import ALICE_ID, BOB_ID, CAROL_ID


@pytest.fixture
def client(container, shifts):
    shifts.add(
        Shift(
            shift_id=1,
            shift_type=ShiftType.MORNING,
            start_time="08:00",
            end_time="16:00",
            department=ShiftDepartment.ICU,
            required_staff=2,
            assigned_staff=StaffSet([ALICE_ID]),
            shift_date=date(2025, 6, 11),
        )
    )
    app = create_app(container, settings_module="config.testing")
    return app.test_client()


def _login(client, email, password):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def _as_admin(client):
    return _login(client, "admin@hospital.test", "admin123")


def _as_alice(client):
    return _login(client, "alice@hospital.test", "secret1")


def test_login_with_wrong_password_is_unauthorized(client):
    resp = client.post("/api/auth/login", json={"email": "alice@hospital.test", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "UNAUTHORIZED"


def test_update_password_checks_current_one(client):
    _as_alice(client)

    wrong = client.put(
        "/api/auth/updatepassword",
        json={"current_password": "nope", "new_password": "better1"},
    )
    assert wrong.status_code == 401

    resp = client.put(
        "/api/auth/updatepassword",
        json={"current_password": "secret1", "new_password": "better1"},
    )
    assert resp.status_code == 200
    client.post("/api/auth/logout")

    old = client.post("/api/auth/login", json={"email": "alice@hospital.test", "password": "secret1"})
    assert old.status_code == 401
    assert _login(client, "alice@hospital.test", "better1")["user_id"] == ALICE_ID


def test_update_password_requires_login(client):
    resp = client.put(
        "/api/auth/updatepassword",
        json={"current_password": "secret1", "new_password": "better1"},
    )

    assert resp.status_code == 401


def test_endpoints_require_login(client):
    resp = client.get("/api/leaves")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_shift_admin_endpoints_forbid_staff(client):
    _as_alice(client)

    assert client.get("/api/shifts").status_code == 403
    assert client.get("/api/auth/me").get_json()["data"]["user_id"] == ALICE_ID


def test_assign_beyond_capacity_returns_400(client):
    _as_admin(client)

    resp = client.post("/api/shifts/1/assign", json={"staff_ids": [BOB_ID, CAROL_ID]})

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "CAPACITY_EXCEEDED"


def test_assign_with_conflict_returns_409_with_detail(client):
    _as_admin(client)
    created = client.post(
        "/api/shifts",
        json={
            "shift_type": "Afternoon",
            "start_time": "12:00",
            "end_time": "20:00",
            "department": "ICU",
            "required_staff": 3,
            "shift_date": "2025-06-11",
        },
    )
    shift_id = created.get_json()["data"]["shift_id"]

    resp = client.post(f"/api/shifts/{shift_id}/assign", json={"staff_ids": [ALICE_ID]})

    body = resp.get_json()
    assert created.status_code == 201
    assert resp.status_code == 409
    assert body["error"]["code"] == "SCHEDULE_CONFLICT"
    assert body["error"]["detail"]["conflicts"][0]["staff_id"] == ALICE_ID


def test_conflict_check_endpoint(client):
    _as_admin(client)

    resp = client.get(
        "/api/shifts/conflicts",
        query_string={"staff_id": ALICE_ID, "start_time": "15:00", "end_time": "23:00", "date": "2025-06-11"},
    )

    data = resp.get_json()["data"]
    assert data["has_conflicts"] is True
    assert data["conflicts"][0]["shift_id"] == 1


def test_leave_round_trip_through_review_and_cancel(client):
    _as_alice(client)
    applied = client.post(
        "/api/leaves/apply",
        json={
            "leave_type": "Vacation Leave",
            "start_date": "2025-06-10",
            "end_date": "2025-06-12",
            "reason": "Family trip",
        },
    )
    leave_id = applied.get_json()["data"]["leave_id"]
    overlap = client.post(
        "/api/leaves/apply",
        json={"leave_type": "Sick Leave", "start_date": "2025-06-11", "end_date": "2025-06-13", "reason": "Flu"},
    )

    assert applied.status_code == 201
    assert applied.get_json()["data"]["affected_shift_ids"] == [1]
    assert overlap.status_code == 409
    assert overlap.get_json()["error"]["detail"]["overlapping_leaves"][0]["leave_id"] == leave_id

    _as_admin(client)
    reviewed = client.put(
        f"/api/leaves/review/{leave_id}",
        json={"status": "Approved", "replacements": [{"shift_id": 1, "staff_id": BOB_ID}]},
    )
    shift = client.get("/api/shifts/1").get_json()["data"]

    assert reviewed.status_code == 200
    assert reviewed.get_json()["data"]["status"] == "Approved"
    assert shift["assigned_staff"] == [BOB_ID]

    _as_alice(client)
    cancelled = client.put(f"/api/leaves/cancel/{leave_id}")
    again = client.put(f"/api/leaves/cancel/{leave_id}")

    assert cancelled.get_json()["data"]["status"] == "Cancelled"
    assert again.status_code == 400
    assert again.get_json()["error"]["code"] == "INVALID_STATE"

    _as_admin(client)
    assert client.get("/api/shifts/1").get_json()["data"]["assigned_staff"] == [ALICE_ID]


def test_missing_leave_is_404(client):
    _as_admin(client)

    resp = client.get("/api/leaves/999")

    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "NOT_FOUND"


def test_leave_list_is_paginated(client):
    _as_alice(client)
    for day in ("2025-07-01", "2025-07-03", "2025-07-05"):
        client.post(
            "/api/leaves/apply",
            json={"leave_type": "Personal Leave", "start_date": day, "end_date": day, "reason": "Errand"},
        )

    resp = client.get("/api/leaves", query_string={"page": 2, "limit": 2})

    body = resp.get_json()
    assert len(body["data"]) == 1
    assert body["meta"]["pagination"] == {
        "current_page": 2,
        "total_pages": 2,
        "total_items": 3,
        "items_per_page": 2,
    }


def test_mark_attendance_and_duplicate(client):
    _as_admin(client)
    payload = {
        "staff_id": ALICE_ID,
        "shift_id": 1,
        "date": "2025-06-11",
        "status": "Late",
        "check_in_time": "08:15",
        "check_out_time": "16:00",
    }

    first = client.post("/api/attendance", json=payload)
    second = client.post("/api/attendance", json=payload)

    assert first.status_code == 201
    assert first.get_json()["data"]["late_by_minutes"] == 15
    assert second.status_code == 409
    assert second.get_json()["error"]["code"] == "DUPLICATE_RECORD"


def test_staff_cannot_read_other_users_stats(client):
    _as_alice(client)

    assert client.get(f"/api/attendance/stats/{BOB_ID}").status_code == 403
    assert client.get(f"/api/leaves/stats/{ALICE_ID}").status_code == 200
