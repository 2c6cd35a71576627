from __future__ import annotations

from ...core.exceptions import ValidationError
from ..model import AttendanceRecord
from .base import AttendanceStrategy


class LeaveStrategy(AttendanceStrategy):
    """Sick and emergency leave days must point at the leave they are covered by."""

    def validate(self, record: AttendanceRecord) -> None:
        if record.leave_id is None:
            raise ValidationError(f"leave_id is required for status {record.status.value}")
