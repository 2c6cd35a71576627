from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..common import time_window
from ..core.exceptions import (
    AlreadyAssignedError,
    CapacityExceededError,
    ConcurrentModificationError,
    NotFoundError,
    ScheduleConflictError,
    ValidationError,
)
from ..users.repository import UserRepository
from .model import Shift
from .repository import ShiftRepository

logger = logging.getLogger(__name__)


def conflict_summary(shift: Shift) -> dict:
    return {
        "shift_id": shift.shift_id,
        "shift_type": shift.shift_type.value,
        "start_time": shift.start_time,
        "end_time": shift.end_time,
        "department": shift.department.value,
        "shift_date": shift.shift_date.isoformat() if shift.shift_date else None,
    }


class ShiftCapacityResolver:
    """Keeps shift assignments within capacity and free of time conflicts.

    Every write is a compare-and-set on the shift's version, so two requests
    racing on the same shift cannot both succeed.
    """

    def __init__(self, shifts: ShiftRepository, users: UserRepository):
        self._shifts = shifts
        self._users = users

    def get_shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError(f"Shift {shift_id} not found")
        return shift

    def save(self, original: Shift, updated: Shift) -> Shift:
        if not self._shifts.update(updated, expected_version=original.version):
            raise ConcurrentModificationError(
                f"Shift {original.shift_id} was modified by another request, please retry"
            )
        return self.get_shift(original.shift_id)

    def find_conflicts(
        self,
        staff_id: int,
        start: str,
        end: str,
        *,
        on_date: Optional[date] = None,
    ) -> List[Shift]:
        time_window.span(start, end)
        return [s for s in self._shifts.list_for_staff(int(staff_id)) if s.overlaps(start, end, on_date)]

    def assign(self, shift_id: int, staff_ids: Sequence[int], *, updated_by: Optional[int] = None) -> Shift:
        ids = _as_ids(staff_ids)
        shift = self.get_shift(shift_id)

        available = shift.available_slots
        if len(ids) > available:
            raise CapacityExceededError(
                f"Only {max(available, 0)} slots available, but trying to assign {len(ids)} staff"
            )

        conflicts: list[dict] = []
        seen: set[int] = set()
        for staff_id in ids:
            staff = self._users.get_by_id(staff_id)
            if not staff:
                raise NotFoundError(f"Staff with ID {staff_id} not found")
            if staff_id in shift.assigned_staff or staff_id in seen:
                raise AlreadyAssignedError(f"Staff {staff.name} is already assigned to this shift")
            seen.add(staff_id)

            found = self.find_conflicts(staff_id, shift.start_time, shift.end_time, on_date=shift.shift_date)
            if found:
                conflicts.append(
                    {
                        "staff_id": staff_id,
                        "staff_name": staff.name,
                        "conflicts": [conflict_summary(c) for c in found],
                    }
                )

        if conflicts:
            raise ScheduleConflictError("Shift conflicts detected", conflicts)

        saved = self.save(shift, shift.with_staff(shift.assigned_staff.added(ids), updated_by=updated_by))
        logger.info("assigned staff %s to shift %s (status=%s)", ids, shift.shift_id, saved.status.value)
        return saved

    def remove(self, shift_id: int, staff_ids: Sequence[int], *, updated_by: Optional[int] = None) -> Shift:
        ids = _as_ids(staff_ids)
        shift = self.get_shift(shift_id)
        saved = self.save(shift, shift.with_staff(shift.assigned_staff.without(ids), updated_by=updated_by))
        logger.info("removed staff %s from shift %s (status=%s)", ids, shift.shift_id, saved.status.value)
        return saved

    def restore(self, shift_id: int, staff_id: int, *, updated_by: Optional[int] = None) -> Shift:
        """Put a staff member back on a shift they were pulled from.

        Idempotent: a member already on the shift is left as is. Capacity is
        still enforced; time conflicts are not re-checked.
        """
        shift = self.get_shift(shift_id)
        if int(staff_id) in shift.assigned_staff:
            return shift
        if shift.available_slots <= 0:
            raise CapacityExceededError(f"Shift {shift.shift_id} is full, cannot restore staff {staff_id}")
        return self.save(shift, shift.with_staff(shift.assigned_staff.added([staff_id]), updated_by=updated_by))

    def add_replacement(
        self,
        shift_id: int,
        staff_id: int,
        *,
        check_conflicts: bool = True,
        updated_by: Optional[int] = None,
    ) -> Shift:
        if check_conflicts:
            return self.assign(shift_id, [staff_id], updated_by=updated_by)

        staff = self._users.get_by_id(int(staff_id))
        if not staff:
            raise NotFoundError(f"Staff with ID {staff_id} not found")
        if int(staff_id) in self.get_shift(shift_id).assigned_staff:
            raise AlreadyAssignedError(f"Staff {staff.name} is already assigned to this shift")
        return self.restore(shift_id, staff_id, updated_by=updated_by)


def _as_ids(staff_ids: Iterable) -> list[int]:
    if isinstance(staff_ids, (str, bytes)) or staff_ids is None:
        raise ValidationError("staff_ids must be a non-empty list")
    try:
        ids = [int(i) for i in staff_ids]
    except (TypeError, ValueError):
        raise ValidationError("staff_ids must contain integer ids")
    if not ids:
        raise ValidationError("staff_ids must be a non-empty list")
    return ids
