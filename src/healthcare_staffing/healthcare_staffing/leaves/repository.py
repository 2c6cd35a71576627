from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import LeaveType
from .model import Leave, LeaveFilter


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        raise NotImplementedError

    def list_overlapping(self, staff_id: int, start: date, end: date) -> Sequence[Leave]:
        """Pending or approved leaves of ``staff_id`` sharing a day with ``[start, end]``."""

        raise NotImplementedError

    def create(self, leave: Leave) -> int:
        """Insert ``leave`` (its id and version are ignored) and return the new id.

        The overlap check is repeated inside the insert transaction; raises
        ``OverlapError`` when another blocking leave got in first.
        """

        raise NotImplementedError

    def update(self, leave: Leave, *, expected_version: int) -> bool:
        """Persist status, review data and replacements if still at ``expected_version``."""

        raise NotImplementedError

    def list_filtered(self, filters: LeaveFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[Leave]:
        """Most recently applied first. A date range matches leaves overlapping it."""

        raise NotImplementedError

    def count_filtered(self, filters: LeaveFilter) -> int:
        raise NotImplementedError

    def list_pending(self) -> Sequence[Leave]:
        """Pending leaves, oldest application first."""

        raise NotImplementedError

    def list_approved_between(self, start: date, end: date) -> Sequence[Leave]:
        raise NotImplementedError

    def used_days_by_type(self, staff_id: int, year: int) -> Dict[LeaveType, int]:
        """Days of approved leave per type, for leaves starting in ``year``."""

        raise NotImplementedError
