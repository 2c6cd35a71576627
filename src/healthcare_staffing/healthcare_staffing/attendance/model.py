from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, ShiftDepartment

LEAVE_STATUSES = frozenset({AttendanceStatus.SICK_LEAVE, AttendanceStatus.EMERGENCY_LEAVE})
PRESENCE_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE, AttendanceStatus.HALF_DAY})


@dataclass(frozen=True)
class AttendanceRecord:
    """One staff member's attendance on one work date.

    Lateness, early exit and hours are derived from the shift window when the
    record is marked or corrected, then stored with it.
    """

    attendance_id: int
    staff_id: int
    shift_id: int
    work_date: date
    status: AttendanceStatus
    scheduled_hours_worked: float = 0.0
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    actual_hours_worked: float = 0.0
    is_late_entry: bool = False
    late_by_minutes: int = 0
    is_early_exit: bool = False
    early_by_minutes: int = 0
    leave_id: Optional[int] = None
    remarks: Optional[str] = None
    marked_by: Optional[int] = None
    marked_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["work_date"] = self.work_date.isoformat()
        data["marked_at"] = self.marked_at.isoformat() if self.marked_at else None
        return data


@dataclass(frozen=True)
class AttendanceFilter:
    staff_id: Optional[int] = None
    shift_id: Optional[int] = None
    work_date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None
    department: Optional[ShiftDepartment] = None


@dataclass(frozen=True)
class StatusTotals:
    """Read-model for grouped attendance (count and hours per status)."""

    status: AttendanceStatus
    count: int
    total_hours: float
    department: Optional[ShiftDepartment] = None

    def to_dict(self) -> dict:
        return {"status": self.status.value, "count": self.count, "total_hours": round(self.total_hours, 2)}
