from __future__ import annotations

from ..model import AttendanceRecord
from .base import AttendanceStrategy


class AbsentStrategy(AttendanceStrategy):
    """Absent: nothing further required."""

    def validate(self, record: AttendanceRecord) -> None:
        return None
