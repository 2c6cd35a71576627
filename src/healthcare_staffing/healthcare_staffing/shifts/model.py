from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Iterator, Optional, Tuple

from ..common import time_window
from ..core.enums import ShiftDepartment, ShiftStatus, ShiftType


class StaffSet:
    """Insertion-ordered set of staff ids assigned to a shift. Immutable."""

    __slots__ = ("_ids",)

    def __init__(self, ids: Iterable[int] = ()):
        self._ids: Tuple[int, ...] = tuple(dict.fromkeys(int(i) for i in ids))

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, staff_id: object) -> bool:
        return staff_id in self._ids

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StaffSet):
            return self._ids == other._ids
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._ids)

    def __repr__(self) -> str:
        return f"StaffSet({list(self._ids)!r})"

    def added(self, staff_ids: Iterable[int]) -> "StaffSet":
        return StaffSet(self._ids + tuple(int(i) for i in staff_ids))

    def without(self, staff_ids: Iterable[int]) -> "StaffSet":
        drop = {int(i) for i in staff_ids}
        return StaffSet(i for i in self._ids if i not in drop)

    def to_list(self) -> list[int]:
        return list(self._ids)


def derive_status(current: ShiftStatus, assigned: int, capacity: int) -> ShiftStatus:
    """Status after a change in assignment count. Closed is left alone."""
    if current == ShiftStatus.CLOSED:
        return current
    if assigned >= capacity:
        return ShiftStatus.FULL
    if current == ShiftStatus.FULL:
        return ShiftStatus.OPEN
    return current


@dataclass(frozen=True)
class Shift:
    """Domain entity: a staffed shift window in one department.

    ``shift_date`` is set for a dated roster entry; undated shifts recur daily.
    """

    shift_id: int
    shift_type: ShiftType
    start_time: str
    end_time: str
    department: ShiftDepartment
    required_staff: int
    assigned_staff: StaffSet = field(default_factory=StaffSet)
    status: ShiftStatus = ShiftStatus.OPEN
    shift_date: Optional[date] = None
    description: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    version: int = 0

    @property
    def available_slots(self) -> int:
        return self.required_staff - len(self.assigned_staff)

    @property
    def is_full(self) -> bool:
        return len(self.assigned_staff) >= self.required_staff

    @property
    def scheduled_hours(self) -> float:
        return time_window.hours_between(self.start_time, self.end_time)

    def with_staff(self, staff: StaffSet, *, updated_by: Optional[int] = None) -> "Shift":
        return replace(
            self,
            assigned_staff=staff,
            status=derive_status(self.status, len(staff), self.required_staff),
            updated_by=updated_by if updated_by is not None else self.updated_by,
        )

    def overlaps(self, start: str, end: str, on_date: Optional[date] = None) -> bool:
        """True when this shift's window shares an instant with ``[start, end)``."""
        if self.shift_date is not None and on_date is not None:
            if abs((self.shift_date - on_date).days) > 1:
                return False
            return time_window.intervals_overlap(
                time_window.absolute_span(self.shift_date, self.start_time, self.end_time),
                time_window.absolute_span(on_date, start, end),
            )
        return time_window.windows_overlap(self.start_time, self.end_time, start, end)

    def to_dict(self) -> dict:
        return {
            "shift_id": self.shift_id,
            "shift_type": self.shift_type.value,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "department": self.department.value,
            "required_staff": self.required_staff,
            "assigned_staff": self.assigned_staff.to_list(),
            "available_slots": self.available_slots,
            "is_full": self.is_full,
            "status": self.status.value,
            "shift_date": self.shift_date.isoformat() if self.shift_date else None,
            "description": self.description,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
        }
