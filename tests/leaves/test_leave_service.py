from datetime import date

import pytest

from src.healthcare_staffing.healthcare_staffing.core.enums import (
    LeaveStatus,
    Role,
    ShiftDepartment,
    ShiftStatus,
    ShiftType,
)
from src.healthcare_staffing.healthcare_staffing.core.exceptions import (
    AlreadyAssignedError,
    AlreadyCancelledError,
    AuthorizationError,
    CapacityExceededError,
    ConcurrentModificationError,
    InvalidStateError,
    OverlapError,
    ScheduleConflictError,
    TooLateError,
    ValidationError,
)
from src.healthcare_staffing.healthcare_staffing.leaves.service import LeaveService
from src.healthcare_staffing.healthcare_staffing.shifts.model import Shift, StaffSet
from tests.conftest import ADMIN_ID, ALICE_ID, BOB_ID, CAROL_ID, DAVE_ID


def _dated_shift(shift_id, day, staff, capacity=2, start="08:00", end="16:00"):
    return Shift(
        shift_id=shift_id,
        shift_type=ShiftType.MORNING,
        start_time=start,
        end_time=end,
        department=ShiftDepartment.ICU,
        required_staff=capacity,
        assigned_staff=StaffSet(staff),
        status=ShiftStatus.FULL if len(staff) >= capacity else ShiftStatus.OPEN,
        shift_date=day,
    )


@pytest.fixture
def roster(shifts):
    shifts.add(_dated_shift(10, date(2025, 6, 11), [ALICE_ID, DAVE_ID]))
    shifts.add(_dated_shift(11, date(2025, 6, 12), [ALICE_ID]))
    shifts.add(_dated_shift(12, date(2025, 6, 20), [ALICE_ID]))
    return shifts


@pytest.fixture
def service(container, roster):
    return container.leave_service


def _apply(service, *, staff_id=ALICE_ID, start="2025-06-10", end="2025-06-12", **kwargs):
    params = dict(
        current_role=Role.NURSE,
        current_user_id=staff_id,
        leave_type="Vacation Leave",
        start_date=start,
        end_date=end,
        reason="Family trip",
    )
    params.update(kwargs)
    return service.apply(**params)


def _review(service, leave_id, status="Approved", replacements=None):
    return service.review(
        current_role=Role.ADMIN,
        current_user_id=ADMIN_ID,
        leave_id=leave_id,
        status=status,
        replacements=replacements,
    )


def _cancel(service, leave_id, *, role=Role.NURSE, user_id=ALICE_ID):
    return service.cancel(current_role=role, current_user_id=user_id, leave_id=leave_id)


def _staff(shifts, shift_id):
    return shifts.get_by_id(shift_id).assigned_staff.to_list()


def test_apply_captures_affected_shifts(service, fixed_now):
    leave = _apply(service)

    assert leave.status == LeaveStatus.PENDING
    assert leave.affected_shift_ids == (10, 11)
    assert leave.number_of_days == 3
    assert leave.duration == "3 days"
    assert leave.applied_at == fixed_now


def test_non_admin_cannot_apply_for_someone_else(service):
    leave = service.apply(
        current_role=Role.NURSE,
        current_user_id=BOB_ID,
        staff_id=ALICE_ID,
        leave_type="Sick Leave",
        start_date="2025-06-10",
        end_date="2025-06-10",
        reason="Fever",
    )

    assert leave.staff_id == BOB_ID


def test_admin_can_apply_on_behalf_of_staff(service):
    leave = service.apply(
        current_role=Role.ADMIN,
        current_user_id=ADMIN_ID,
        staff_id=CAROL_ID,
        leave_type="Emergency Leave",
        start_date="2025-06-03",
        end_date="2025-06-03",
        reason="Family emergency",
        is_emergency=True,
        emergency_contact={"name": "Sam", "phone": "+15551234567", "relationship": "Brother"},
    )

    assert leave.staff_id == CAROL_ID
    assert leave.duration == "1 day"
    assert leave.emergency_contact.name == "Sam"


def test_overlapping_leave_is_rejected(service):
    first = _apply(service, start="2025-06-10", end="2025-06-12")

    with pytest.raises(OverlapError) as excinfo:
        _apply(service, start="2025-06-11", end="2025-06-13")

    assert [leave.leave_id for leave in excinfo.value.overlapping] == [first.leave_id]


def test_approved_leave_blocks_overlapping_application(service):
    approved = _apply(service, start="2025-06-11", end="2025-06-13")
    _review(service, approved.leave_id)

    with pytest.raises(OverlapError):
        _apply(service, start="2025-06-10", end="2025-06-12")


def test_rejected_leave_does_not_block_new_application(service):
    first = _apply(service)
    _review(service, first.leave_id, status="Rejected")

    second = _apply(service, start="2025-06-11", end="2025-06-13")

    assert second.status == LeaveStatus.PENDING


def test_apply_validates_dates_and_reason(service):
    with pytest.raises(ValidationError):
        _apply(service, start="2025-06-12", end="2025-06-10")
    with pytest.raises(ValidationError):
        _apply(service, reason="   ")
    with pytest.raises(ValidationError):
        _apply(service, start="12/06/2025")


def test_approve_removes_staff_and_adds_replacement(service, roster):
    leave = _apply(service)

    approved = _review(service, leave.leave_id, replacements=[{"shift_id": 10, "staff_id": BOB_ID}])

    assert approved.status == LeaveStatus.APPROVED
    assert approved.reviewed_by == ADMIN_ID
    assert [(r.shift_id, r.staff_id) for r in approved.replacements] == [(10, BOB_ID)]
    assert _staff(roster, 10) == [DAVE_ID, BOB_ID]
    assert _staff(roster, 11) == []
    assert _staff(roster, 12) == [ALICE_ID]
    assert roster.get_by_id(11).status == ShiftStatus.OPEN


def test_cancel_after_approval_restores_staff_exactly_once(service, roster):
    leave = _apply(service)
    _review(service, leave.leave_id, replacements=[{"shift_id": 10, "staff_id": BOB_ID}])

    cancelled = _cancel(service, leave.leave_id)

    assert cancelled.status == LeaveStatus.CANCELLED
    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])
    assert _staff(roster, 11) == [ALICE_ID]
    assert roster.get_by_id(10).status == ShiftStatus.FULL
    with pytest.raises(AlreadyCancelledError):
        _cancel(service, leave.leave_id)
    assert _staff(roster, 11).count(ALICE_ID) == 1


def test_failed_replacement_rolls_back_everything(service, roster, leaves):
    leave = _apply(service)

    with pytest.raises(CapacityExceededError):
        _review(
            service,
            leave.leave_id,
            replacements=[{"shift_id": 10, "staff_id": BOB_ID}, {"shift_id": 10, "staff_id": CAROL_ID}],
        )

    stored = leaves.get_by_id(leave.leave_id)
    assert stored.status == LeaveStatus.PENDING
    assert stored.replacements == ()
    assert stored.reviewed_by is None
    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])
    assert _staff(roster, 11) == [ALICE_ID]


def test_failed_shift_write_rolls_back_leave(service, roster, leaves):
    leave = _apply(service)
    roster.fail_updates_for.add(11)

    with pytest.raises(RuntimeError):
        _review(service, leave.leave_id)

    assert leaves.get_by_id(leave.leave_id).status == LeaveStatus.PENDING
    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])
    assert _staff(roster, 11) == [ALICE_ID]


def test_conflicting_replacement_is_rejected(service, roster, leaves):
    roster.add(_dated_shift(20, date(2025, 6, 11), [BOB_ID], start="12:00", end="20:00"))
    leave = _apply(service)

    with pytest.raises(ScheduleConflictError):
        _review(service, leave.leave_id, replacements=[{"shift_id": 10, "staff_id": BOB_ID}])

    assert leaves.get_by_id(leave.leave_id).status == LeaveStatus.PENDING
    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])


def test_conflict_check_can_be_switched_off(container, roster, leaves, users, fixed_now):
    roster.add(_dated_shift(20, date(2025, 6, 11), [BOB_ID], start="12:00", end="20:00"))
    service = LeaveService(
        leaves,
        users,
        roster,
        container.shift_resolver,
        clock=lambda: fixed_now,
        validate_replacements=False,
    )
    leave = _apply(service)

    _review(service, leave.leave_id, replacements=[{"shift_id": 10, "staff_id": BOB_ID}])

    assert BOB_ID in roster.get_by_id(10).assigned_staff


def test_relaxed_replacement_already_on_shift_is_refused(container, roster, leaves, users, fixed_now):
    service = LeaveService(
        leaves,
        users,
        roster,
        container.shift_resolver,
        clock=lambda: fixed_now,
        validate_replacements=False,
    )
    leave = _apply(service)

    with pytest.raises(AlreadyAssignedError):
        _review(service, leave.leave_id, replacements=[{"shift_id": 10, "staff_id": DAVE_ID}])

    assert leaves.get_by_id(leave.leave_id).status == LeaveStatus.PENDING
    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])


def test_replacement_must_target_affected_shift(service):
    leave = _apply(service)

    with pytest.raises(ValidationError):
        _review(service, leave.leave_id, replacements=[{"shift_id": 12, "staff_id": BOB_ID}])
    with pytest.raises(ValidationError):
        _review(service, leave.leave_id, replacements=[{"shift_id": 10, "staff_id": ALICE_ID}])


def test_review_twice_is_invalid(service):
    leave = _apply(service)
    _review(service, leave.leave_id, status="Rejected")

    with pytest.raises(InvalidStateError):
        _review(service, leave.leave_id)


def test_review_status_must_be_a_decision(service):
    leave = _apply(service)

    with pytest.raises(ValidationError):
        _review(service, leave.leave_id, status="Cancelled")


def test_stale_leave_read_loses_the_race(service, roster, leaves, monkeypatch):
    leave = _apply(service)
    _review(service, leave.leave_id, status="Rejected")
    monkeypatch.setattr(leaves, "get_by_id", lambda leave_id: leave)

    with pytest.raises(ConcurrentModificationError):
        _review(service, leave.leave_id)

    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])


def test_cancel_pending_leave(service, roster):
    leave = _apply(service)

    cancelled = _cancel(service, leave.leave_id)

    assert cancelled.status == LeaveStatus.CANCELLED
    assert _staff(roster, 11) == [ALICE_ID]


def test_cancel_rejected_leave_is_invalid(service):
    leave = _apply(service)
    _review(service, leave.leave_id, status="Rejected")

    with pytest.raises(InvalidStateError):
        _cancel(service, leave.leave_id)


def test_cancel_started_leave_is_too_late(service):
    leave = _apply(service, start="2025-06-01", end="2025-06-02")
    _review(service, leave.leave_id)

    with pytest.raises(TooLateError):
        _cancel(service, leave.leave_id)


def test_cancel_someone_elses_leave_is_forbidden(service):
    leave = _apply(service)

    with pytest.raises(AuthorizationError):
        _cancel(service, leave.leave_id, user_id=BOB_ID)


def test_cancel_skips_shift_deleted_since_approval(service, roster):
    leave = _apply(service)
    _review(service, leave.leave_id)
    roster.delete(11)

    _cancel(service, leave.leave_id)

    assert sorted(_staff(roster, 10)) == sorted([ALICE_ID, DAVE_ID])


def test_balance_can_go_negative(service):
    leave = _apply(service, start="2025-07-01", end="2025-07-25")
    _review(service, leave.leave_id)

    balance = service.balance(current_role=Role.NURSE, current_user_id=ALICE_ID, staff_id=ALICE_ID, year=2025)

    vacation = balance["leave_types"]["Vacation Leave"]
    assert vacation == {"entitled": 21, "used": 25, "remaining": -4}
    assert balance["summary"]["total_used"] == 25


def test_balance_of_someone_else_is_forbidden(service):
    with pytest.raises(AuthorizationError):
        service.balance(current_role=Role.NURSE, current_user_id=BOB_ID, staff_id=ALICE_ID)


@pytest.mark.parametrize("year", ["10000", 0])
def test_balance_rejects_out_of_range_year(service, year):
    with pytest.raises(ValidationError):
        service.balance(current_role=Role.ADMIN, current_user_id=ADMIN_ID, staff_id=ALICE_ID, year=year)


def test_pending_queue_splits_urgent_from_regular(service):
    soon = _apply(service, staff_id=BOB_ID, start="2025-06-03", end="2025-06-03")
    emergency = _apply(service, staff_id=CAROL_ID, start="2025-06-20", end="2025-06-21", is_emergency=True)
    later = _apply(service)

    queue = service.pending_queue(current_role=Role.ADMIN)

    assert [leave.leave_id for leave in queue["urgent"]] == [soon.leave_id, emergency.leave_id]
    assert [leave.leave_id for leave in queue["regular"]] == [later.leave_id]
    assert queue["total"] == 3


def test_team_calendar_filters_by_department(service):
    alice = _apply(service)
    carol = _apply(service, staff_id=CAROL_ID)
    _review(service, alice.leave_id)
    _review(service, carol.leave_id)

    entries = service.team_calendar(start_date="2025-06-01", end_date="2025-06-30", department="ICU")

    assert [e["staff_name"] for e in entries] == ["Alice"]
    assert entries[0]["number_of_days"] == 3


def test_list_leaves_non_admin_sees_own(service):
    _apply(service)
    _apply(service, staff_id=BOB_ID)

    page = service.list_leaves(current_role=Role.NURSE, current_user_id=BOB_ID)

    assert [leave.staff_id for leave in page.items] == [BOB_ID]
