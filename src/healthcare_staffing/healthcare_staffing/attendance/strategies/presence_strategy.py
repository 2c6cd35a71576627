from __future__ import annotations

from ...core.exceptions import ValidationError
from ..model import AttendanceRecord
from .base import AttendanceStrategy


class PresenceStrategy(AttendanceStrategy):
    """Present, Late and Half Day: the staff member must have checked in."""

    def validate(self, record: AttendanceRecord) -> None:
        if not record.check_in_time:
            raise ValidationError(f"Check-in time is required for status {record.status.value}")
