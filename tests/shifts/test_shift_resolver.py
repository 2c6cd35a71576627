from datetime import date

import pytest

from src.healthcare_staffing.healthcare_staffing.core.enums import Role, ShiftDepartment, ShiftStatus, ShiftType
from src.healthcare_staffing.healthcare_staffing.core.exceptions import (
    AlreadyAssignedError,
    AuthorizationError,
    CapacityExceededError,
    ConcurrentModificationError,
    NotFoundError,
    ScheduleConflictError,
    ValidationError,
)
from src.healthcare_staffing.healthcare_staffing.shifts.model import Shift, StaffSet
from tests.conftest import ADMIN_ID, ALICE_ID, BOB_ID, CAROL_ID, DAVE_ID


def _shift(shift_id, start, end, *, staff=(), capacity=2, shift_type=ShiftType.MORNING, shift_date=None):
    return Shift(
        shift_id=shift_id,
        shift_type=shift_type,
        start_time=start,
        end_time=end,
        department=ShiftDepartment.ICU,
        required_staff=capacity,
        assigned_staff=StaffSet(staff),
        status=ShiftStatus.FULL if len(staff) >= capacity else ShiftStatus.OPEN,
        shift_date=shift_date,
    )


def test_assign_fills_shift_and_marks_it_full(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00"))

    saved = container.shift_resolver.assign(1, [ALICE_ID, BOB_ID], updated_by=ADMIN_ID)

    assert saved.assigned_staff.to_list() == [ALICE_ID, BOB_ID]
    assert saved.status == ShiftStatus.FULL
    assert saved.available_slots == 0
    assert saved.version == 1


def test_assign_over_capacity_is_rejected(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID]))

    with pytest.raises(CapacityExceededError):
        container.shift_resolver.assign(1, [BOB_ID, CAROL_ID])

    assert shifts.get_by_id(1).assigned_staff.to_list() == [ALICE_ID]


def test_assign_same_staff_twice_is_rejected(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID], capacity=3))

    with pytest.raises(AlreadyAssignedError):
        container.shift_resolver.assign(1, [ALICE_ID])
    with pytest.raises(AlreadyAssignedError):
        container.shift_resolver.assign(1, [BOB_ID, BOB_ID])


def test_assign_unknown_staff_is_not_found(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00"))

    with pytest.raises(NotFoundError):
        container.shift_resolver.assign(1, [999])


def test_assign_reports_every_conflicting_candidate(container, shifts):
    shifts.add(_shift(1, "06:00", "14:00", staff=[ALICE_ID, BOB_ID]))
    shifts.add(_shift(2, "12:00", "20:00", capacity=3, shift_type=ShiftType.AFTERNOON))

    with pytest.raises(ScheduleConflictError) as excinfo:
        container.shift_resolver.assign(2, [ALICE_ID, BOB_ID, CAROL_ID])

    conflicts = excinfo.value.conflicts
    assert [c["staff_id"] for c in conflicts] == [ALICE_ID, BOB_ID]
    assert conflicts[0]["conflicts"][0]["shift_id"] == 1
    assert shifts.get_by_id(2).assigned_staff.to_list() == []


def test_night_shift_conflicts_with_early_morning_shift(container, shifts):
    shifts.add(_shift(1, "22:00", "06:00", staff=[ALICE_ID], shift_type=ShiftType.NIGHT))
    shifts.add(_shift(2, "05:00", "09:00"))

    with pytest.raises(ScheduleConflictError):
        container.shift_resolver.assign(2, [ALICE_ID])


def test_dated_shifts_on_distant_days_do_not_conflict(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID], shift_date=date(2025, 6, 10)))
    shifts.add(_shift(2, "08:00", "16:00", shift_date=date(2025, 6, 12)))

    saved = container.shift_resolver.assign(2, [ALICE_ID])

    assert ALICE_ID in saved.assigned_staff


def test_remove_reopens_full_shift(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID, BOB_ID]))

    saved = container.shift_resolver.remove(1, [ALICE_ID])

    assert saved.assigned_staff.to_list() == [BOB_ID]
    assert saved.status == ShiftStatus.OPEN


def test_closed_shift_stays_closed_on_assignment(container, shifts):
    shifts.add(
        Shift(
            shift_id=1,
            shift_type=ShiftType.MORNING,
            start_time="08:00",
            end_time="16:00",
            department=ShiftDepartment.ICU,
            required_staff=1,
            status=ShiftStatus.CLOSED,
        )
    )

    saved = container.shift_resolver.assign(1, [ALICE_ID])

    assert saved.status == ShiftStatus.CLOSED


def test_stale_write_raises_concurrent_modification(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", capacity=3))
    stale = shifts.get_by_id(1)
    container.shift_resolver.assign(1, [ALICE_ID])

    with pytest.raises(ConcurrentModificationError):
        container.shift_resolver.save(stale, stale.with_staff(StaffSet([BOB_ID])))


def test_restore_is_idempotent_and_respects_capacity(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID], capacity=1))

    assert container.shift_resolver.restore(1, ALICE_ID).assigned_staff.to_list() == [ALICE_ID]
    with pytest.raises(CapacityExceededError):
        container.shift_resolver.restore(1, DAVE_ID)


def test_staff_ids_must_be_a_list(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00"))

    with pytest.raises(ValidationError):
        container.shift_resolver.assign(1, "2")
    with pytest.raises(ValidationError):
        container.shift_resolver.assign(1, [])


def test_service_lowering_capacity_below_assigned_is_rejected(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID, BOB_ID], capacity=3))

    with pytest.raises(CapacityExceededError):
        container.shift_service.update_shift(
            current_role=Role.ADMIN,
            current_user_id=ADMIN_ID,
            shift_id=1,
            changes={"required_staff": 1},
        )


def test_service_raising_capacity_reopens_full_shift(container, shifts):
    shifts.add(_shift(1, "08:00", "16:00", staff=[ALICE_ID, BOB_ID], capacity=2))

    saved = container.shift_service.update_shift(
        current_role=Role.ADMIN,
        current_user_id=ADMIN_ID,
        shift_id=1,
        changes={"required_staff": 4},
    )

    assert saved.status == ShiftStatus.OPEN
    assert saved.available_slots == 2


def test_service_rejects_non_admin(container):
    with pytest.raises(AuthorizationError):
        container.shift_service.create_shift(
            current_role=Role.NURSE,
            current_user_id=ALICE_ID,
            shift_type="Morning",
            start_time="08:00",
            end_time="16:00",
            department="ICU",
        )


def test_service_create_normalizes_clock(container):
    shift = container.shift_service.create_shift(
        current_role=Role.ADMIN,
        current_user_id=ADMIN_ID,
        shift_type="Night",
        start_time="22:00",
        end_time="6:00",
        department="Emergency",
        required_staff=3,
    )

    assert shift.end_time == "06:00"
    assert shift.scheduled_hours == 8.0
    assert shift.status == ShiftStatus.OPEN
