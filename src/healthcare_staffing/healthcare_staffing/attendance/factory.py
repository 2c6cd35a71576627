from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import AttendanceStatus
from .model import LEAVE_STATUSES, PRESENCE_STATUSES
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.leave_strategy import LeaveStrategy
from .strategies.presence_strategy import PresenceStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the requirement strategy for a status."""

    def for_status(self, status: AttendanceStatus) -> AttendanceStrategy:
        if status in PRESENCE_STATUSES:
            return PresenceStrategy()
        if status in LEAVE_STATUSES:
            return LeaveStrategy()
        return AbsentStrategy()
