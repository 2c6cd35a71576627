from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceFilter, AttendanceRecord, StatusTotals


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_staff_and_date(self, staff_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> int:
        """Insert ``record`` (its ``attendance_id`` is ignored) and return the new id.

        Raises ``DuplicateRecordError`` when the staff member already has a
        record for that work date.
        """

        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        raise NotImplementedError

    def list_filtered(
        self,
        filters: AttendanceFilter,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest work date first."""

        raise NotImplementedError

    def count_filtered(self, filters: AttendanceFilter) -> int:
        raise NotImplementedError

    def aggregate_by_status(self, staff_id: int, start: date, end: date) -> Sequence[StatusTotals]:
        raise NotImplementedError

    def daily_summary(self, work_date: date) -> Sequence[StatusTotals]:
        """Totals per (shift department, status) for one day."""

        raise NotImplementedError
