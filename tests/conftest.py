from __future__ import annotations

from datetime import datetime

import pytest

from src.healthcare_staffing.healthcare_staffing.container import wire_container
from src.healthcare_staffing.healthcare_staffing.core.enums import Role
from tests.fakes import (
    InMemoryAttendance,
    InMemoryLeaves,
    InMemoryShifts,
    InMemoryStaff,
    InMemoryUsers,
    make_user,
)

ADMIN_ID = 1
ALICE_ID = 2
BOB_ID = 3
CAROL_ID = 4
DAVE_ID = 5


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 6, 1, 8, 0, 0)


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers(
        [
            make_user(ADMIN_ID, "Admin", Role.ADMIN, password="admin123"),
            make_user(ALICE_ID, "Alice", Role.NURSE, department="ICU"),
            make_user(BOB_ID, "Bob", Role.NURSE, department="ICU"),
            make_user(CAROL_ID, "Carol", Role.DOCTOR, department="Surgery"),
            make_user(DAVE_ID, "Dave", Role.TECHNICIAN, department="ICU"),
        ]
    )


@pytest.fixture
def shifts() -> InMemoryShifts:
    return InMemoryShifts()


@pytest.fixture
def leaves() -> InMemoryLeaves:
    return InMemoryLeaves()


@pytest.fixture
def attendance(shifts) -> InMemoryAttendance:
    return InMemoryAttendance(shifts)


@pytest.fixture
def container(users, shifts, leaves, attendance, fixed_now):
    return wire_container(
        users_repo=users,
        staff_repo=InMemoryStaff(),
        shifts_repo=shifts,
        attendance_repo=attendance,
        leaves_repo=leaves,
        clock=lambda: fixed_now,
    )
