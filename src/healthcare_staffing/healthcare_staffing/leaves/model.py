from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple

from ..common.datetime_utils import inclusive_days
from ..core.enums import LeaveStatus, LeaveType

# Leaves in these states block other leaves over the same dates.
BLOCKING_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)


def duration_label(days: int) -> str:
    if days == 1:
        return "1 day"
    return f"{days} days"


def dates_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    return start_a <= end_b and end_a >= start_b


@dataclass(frozen=True)
class ReplacementAssignment:
    """A staff member covering one of the absent staff member's shifts."""

    shift_id: int
    staff_id: int

    def to_dict(self) -> dict:
        return {"shift_id": self.shift_id, "staff_id": self.staff_id}


@dataclass(frozen=True)
class EmergencyContact:
    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["EmergencyContact"]:
        if not data:
            return None
        return cls(name=data.get("name"), phone=data.get("phone"), relationship=data.get("relationship"))

    def to_dict(self) -> dict:
        return {"name": self.name, "phone": self.phone, "relationship": self.relationship}


@dataclass(frozen=True)
class Leave:
    """A leave application and, once reviewed, its effect on the roster.

    ``affected_shift_ids`` is captured when the leave is applied for and is
    not re-derived later. ``number_of_days`` and the other read-only
    properties are computed from the stored dates.
    """

    leave_id: int
    staff_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    applied_at: Optional[datetime] = None
    is_emergency: bool = False
    affected_shift_ids: Tuple[int, ...] = ()
    replacements: Tuple[ReplacementAssignment, ...] = ()
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None
    handover_notes: Optional[str] = None
    emergency_contact: Optional[EmergencyContact] = None
    version: int = 0

    @property
    def number_of_days(self) -> int:
        return inclusive_days(self.start_date, self.end_date)

    @property
    def duration(self) -> str:
        return duration_label(self.number_of_days)

    def is_active(self, today: date) -> bool:
        return self.status == LeaveStatus.APPROVED and self.start_date <= today <= self.end_date

    def is_upcoming(self, today: date) -> bool:
        return self.status == LeaveStatus.APPROVED and self.start_date > today

    def overlaps(self, start: date, end: date) -> bool:
        return dates_overlap(self.start_date, self.end_date, start, end)

    def to_dict(self, today: date) -> dict:
        return {
            "leave_id": self.leave_id,
            "staff_id": self.staff_id,
            "leave_type": self.leave_type.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "number_of_days": self.number_of_days,
            "duration": self.duration,
            "reason": self.reason,
            "status": self.status.value,
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
            "is_emergency": self.is_emergency,
            "is_active": self.is_active(today),
            "is_upcoming": self.is_upcoming(today),
            "affected_shift_ids": list(self.affected_shift_ids),
            "replacements": [r.to_dict() for r in self.replacements],
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "review_comments": self.review_comments,
            "handover_notes": self.handover_notes,
            "emergency_contact": self.emergency_contact.to_dict() if self.emergency_contact else None,
        }


@dataclass(frozen=True)
class LeaveFilter:
    staff_id: Optional[int] = None
    status: Optional[LeaveStatus] = None
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
