from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ShiftDepartment, ShiftStatus, ShiftType
from .model import Shift


@dataclass(frozen=True)
class ShiftFilter:
    shift_type: Optional[ShiftType] = None
    department: Optional[ShiftDepartment] = None
    status: Optional[ShiftStatus] = None
    shift_date: Optional[date] = None


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def list_filtered(self, filters: ShiftFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[Shift]:
        """Ordered by shift type then start time."""

        raise NotImplementedError

    def count_filtered(self, filters: ShiftFilter) -> int:
        raise NotImplementedError

    def list_for_staff(self, staff_id: int) -> Sequence[Shift]:
        raise NotImplementedError

    def list_for_staff_between(self, staff_id: int, start: date, end: date) -> Sequence[Shift]:
        """Dated shifts in ``[start, end]`` that ``staff_id`` is assigned to."""

        raise NotImplementedError

    def create(
        self,
        *,
        shift_type: ShiftType,
        start_time: str,
        end_time: str,
        department: ShiftDepartment,
        required_staff: int,
        shift_date: Optional[date],
        description: Optional[str],
        created_by: int,
    ) -> int:
        raise NotImplementedError

    def update(self, shift: Shift, *, expected_version: int) -> bool:
        """Persist ``shift`` (fields and assigned staff) if still at ``expected_version``.

        Returns False when another writer got there first.
        """

        raise NotImplementedError

    def delete(self, shift_id: int) -> bool:
        raise NotImplementedError
