from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..common import time_window
from ..common.datetime_utils import month_bounds, now_local, parse_iso_date, year_bounds
from ..common.paging import Page, PageRequest
from ..common.validators import optional_text, require_enum
from ..core.constants import MAX_REMARKS_LENGTH
from ..core.enums import AttendanceStatus, Role, ShiftDepartment
from ..core.exceptions import AuthorizationError, DuplicateRecordError, NotFoundError, ValidationError
from ..leaves.repository import LeaveRepository
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import LEAVE_STATUSES, AttendanceFilter, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_UPDATABLE = {"status", "check_in_time", "check_out_time", "leave_id", "remarks"}


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _as_date(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name} is required")
    return parse_iso_date(str(value))


def _optional_clock(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return time_window.normalize_clock(value)


def _optional_id(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def _late_fields(check_in: Optional[str], shift: Shift) -> Dict[str, Any]:
    if not check_in:
        return {"is_late_entry": False, "late_by_minutes": 0}
    late, minutes = time_window.is_late(check_in, shift.start_time)
    return {"is_late_entry": late, "late_by_minutes": minutes}


def _early_fields(check_out: Optional[str], shift: Shift) -> Dict[str, Any]:
    if not check_out:
        return {"is_early_exit": False, "early_by_minutes": 0}
    early, minutes = time_window.is_early(check_out, shift.end_time)
    return {"is_early_exit": early, "early_by_minutes": minutes}


def _actual_hours(check_in: Optional[str], check_out: Optional[str]) -> float:
    if check_in and check_out:
        return time_window.hours_between(check_in, check_out)
    return 0.0


class AttendanceService:
    """Marks and corrects attendance, deriving timings from the shift window."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        shifts: ShiftRepository,
        leaves: LeaveRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._shifts = shifts
        self._leaves = leaves
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    def _shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError("Shift not found")
        return shift

    def _check_leave(self, leave_id: Optional[int], staff_id: int) -> None:
        if leave_id is None:
            return
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError("Leave not found")
        if leave.staff_id != int(staff_id):
            raise ValidationError("Leave belongs to a different staff member")

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def mark(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        staff_id,
        shift_id,
        work_date,
        status,
        check_in_time: Optional[str] = None,
        check_out_time: Optional[str] = None,
        leave_id=None,
        remarks: Optional[str] = None,
    ) -> AttendanceRecord:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can mark attendance")

        staff_id = _optional_id(staff_id, "staff_id")
        shift_id = _optional_id(shift_id, "shift_id")
        if staff_id is None or shift_id is None:
            raise ValidationError("staff_id and shift_id are required")
        work_date = _as_date(work_date, "Date")
        status = require_enum(AttendanceStatus, status, "Status")
        check_in = _optional_clock(check_in_time)
        check_out = _optional_clock(check_out_time)
        leave_id = _optional_id(leave_id, "leave_id")

        if self._attendance.get_for_staff_and_date(staff_id, work_date):
            raise DuplicateRecordError("Attendance already marked for this date")
        shift = self._shift(shift_id)
        if not self._users.get_by_id(staff_id):
            raise NotFoundError("Staff member not found")
        if status not in LEAVE_STATUSES:
            leave_id = None
        self._check_leave(leave_id, staff_id)

        record = AttendanceRecord(
            attendance_id=0,
            staff_id=staff_id,
            shift_id=shift.shift_id,
            work_date=work_date,
            status=status,
            scheduled_hours_worked=shift.scheduled_hours,
            check_in_time=check_in,
            check_out_time=check_out,
            actual_hours_worked=_actual_hours(check_in, check_out),
            leave_id=leave_id,
            remarks=optional_text(remarks, "Remarks", MAX_REMARKS_LENGTH),
            marked_by=int(current_user_id),
            marked_at=self._clock(),
            **_late_fields(check_in, shift),
            **_early_fields(check_out, shift),
        )
        self._factory.for_status(status).validate(record)

        attendance_id = self._attendance.create(record)
        logger.info("attendance %s marked for staff %s on %s (%s)", attendance_id, staff_id, work_date, status.value)
        return self.get_record(attendance_id)

    def update(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        attendance_id: int,
        changes: Mapping[str, Any],
    ) -> AttendanceRecord:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can correct attendance")

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Unknown attendance fields: {', '.join(sorted(unknown))}")

        record = self.get_record(attendance_id)
        fields: Dict[str, Any] = {"marked_by": int(current_user_id), "marked_at": self._clock()}
        if "status" in changes:
            fields["status"] = require_enum(AttendanceStatus, changes["status"], "Status")
        if "remarks" in changes:
            fields["remarks"] = optional_text(changes["remarks"], "Remarks", MAX_REMARKS_LENGTH)
        if "leave_id" in changes:
            fields["leave_id"] = _optional_id(changes["leave_id"], "leave_id")

        if "check_in_time" in changes or "check_out_time" in changes:
            shift = self._shift(record.shift_id)
            if "check_in_time" in changes:
                fields["check_in_time"] = _optional_clock(changes["check_in_time"])
                fields.update(_late_fields(fields["check_in_time"], shift))
            if "check_out_time" in changes:
                fields["check_out_time"] = _optional_clock(changes["check_out_time"])
                fields.update(_early_fields(fields["check_out_time"], shift))

        updated = replace(record, **fields)
        if updated.status not in LEAVE_STATUSES and updated.leave_id is not None:
            updated = replace(updated, leave_id=None)
        updated = replace(updated, actual_hours_worked=_actual_hours(updated.check_in_time, updated.check_out_time))

        self._factory.for_status(updated.status).validate(updated)
        if updated.leave_id != record.leave_id:
            self._check_leave(updated.leave_id, updated.staff_id)

        if not self._attendance.update(updated):
            raise NotFoundError("Attendance record not found")
        logger.info("attendance %s corrected by user %s", record.attendance_id, current_user_id)
        return self.get_record(record.attendance_id)

    def list_records(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        staff_id=None,
        shift_id=None,
        work_date=None,
        start_date=None,
        end_date=None,
        status=None,
        department=None,
        page: PageRequest = PageRequest(),
    ) -> Page[AttendanceRecord]:
        staff_id = _optional_id(staff_id, "staff_id")
        if current_role != Role.ADMIN:
            # Non-admins only ever see their own attendance.
            staff_id = int(current_user_id)

        start = parse_iso_date(start_date) if start_date and end_date else None
        end = parse_iso_date(end_date) if start_date and end_date else None
        if start and end and end < start:
            raise ValidationError("end_date must not be before start_date")

        filters = AttendanceFilter(
            staff_id=staff_id,
            shift_id=_optional_id(shift_id, "shift_id"),
            work_date=parse_iso_date(work_date) if work_date else None,
            start_date=start,
            end_date=end,
            status=require_enum(AttendanceStatus, status, "Status") if status else None,
            department=require_enum(ShiftDepartment, department, "Department") if department else None,
        )
        items = self._attendance.list_filtered(filters, offset=page.offset, limit=page.limit)
        return Page(items=items, page=page.page, limit=page.limit, total=self._attendance.count_filtered(filters))

    def stats(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        staff_id,
        start_date=None,
        end_date=None,
        year=None,
    ) -> dict:
        """Per-status totals for one staff member over a period.

        The period is a calendar ``year`` when given, else ``start_date`` to
        ``end_date``, else the current month.
        """
        staff_id = _optional_id(staff_id, "staff_id")
        if staff_id is None:
            raise ValidationError("staff_id is required")
        if current_role != Role.ADMIN and staff_id != int(current_user_id):
            raise AuthorizationError("You can only view your own attendance statistics")
        if not self._users.get_by_id(staff_id):
            raise NotFoundError("Staff member not found")

        if year not in (None, ""):
            start, end = year_bounds(_optional_id(year, "year"))
        elif start_date and end_date:
            start, end = parse_iso_date(start_date), parse_iso_date(end_date)
            if end < start:
                raise ValidationError("end_date must not be before start_date")
        else:
            start, end = month_bounds(self._clock().date())

        rows = self._attendance.aggregate_by_status(staff_id, start, end)
        summary = {
            "total_days": 0,
            "total_hours": 0.0,
            "present_days": 0,
            "absent_days": 0,
            "late_days": 0,
            "leave_days": 0,
        }
        for row in rows:
            summary["total_days"] += row.count
            summary["total_hours"] += row.total_hours
            if row.status == AttendanceStatus.PRESENT:
                summary["present_days"] = row.count
            elif row.status == AttendanceStatus.ABSENT:
                summary["absent_days"] = row.count
            elif row.status == AttendanceStatus.LATE:
                summary["late_days"] = row.count
            elif row.status in LEAVE_STATUSES:
                summary["leave_days"] += row.count

        total = summary["total_days"]
        summary["total_hours"] = round(summary["total_hours"], 2)
        summary["attendance_percentage"] = (
            int(round_half_up((summary["present_days"] + summary["late_days"]) / total * 100)) if total else 0
        )
        summary["average_hours_per_day"] = round_half_up(summary["total_hours"] / total, 2) if total else 0

        return {
            "period": {"start_date": start.isoformat(), "end_date": end.isoformat()},
            "statistics": {row.status.value: {"count": row.count, "total_hours": round(row.total_hours, 2)} for row in rows},
            "summary": summary,
        }

    def daily_summary(self, *, current_role: Role, work_date) -> dict:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can view the daily summary")
        day = _as_date(work_date, "Date")

        departments: Dict[str, dict] = {}
        for row in self._attendance.daily_summary(day):
            name = row.department.value if row.department else "Unknown"
            dept = departments.setdefault(
                name, {"department": name, "statuses": [], "total_staff": 0, "total_hours": 0.0}
            )
            dept["statuses"].append(row.to_dict())
            dept["total_staff"] += row.count
            dept["total_hours"] = round(dept["total_hours"] + row.total_hours, 2)

        result: List[dict] = list(departments.values())
        return {"date": day.isoformat(), "departments": result}
