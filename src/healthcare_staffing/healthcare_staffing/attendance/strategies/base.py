from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import AttendanceRecord


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate what a status requires of a record."""

    @abstractmethod
    def validate(self, record: AttendanceRecord) -> None:
        """Raise ``ValidationError`` when ``record`` lacks what its status needs."""

        raise NotImplementedError
