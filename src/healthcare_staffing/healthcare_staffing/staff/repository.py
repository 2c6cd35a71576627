from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import StaffFilter, StaffRecord


class StaffRepository(Protocol):
    def get_by_id(self, staff_id: int) -> Optional[StaffRecord]:
        raise NotImplementedError

    def list_filtered(self, filters: StaffFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[StaffRecord]:
        raise NotImplementedError

    def count_filtered(self, filters: StaffFilter) -> int:
        raise NotImplementedError

    def create(self, record: StaffRecord) -> int:
        """Raises ``DuplicateRecordError`` on a taken employee id or email."""

        raise NotImplementedError

    def update(self, record: StaffRecord) -> bool:
        raise NotImplementedError

    def delete(self, staff_id: int) -> bool:
        raise NotImplementedError
