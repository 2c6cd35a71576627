from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, ShiftDepartment
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_clock
from .model import AttendanceFilter, AttendanceRecord, StatusTotals
from .repository import AttendanceRepository

_COLUMNS = """
    a.attendance_id, a.staff_id, a.shift_id, a.work_date, a.status,
    a.scheduled_hours_worked, a.check_in_time, a.check_out_time,
    a.actual_hours_worked, a.is_late_entry, a.late_by_minutes,
    a.is_early_exit, a.early_by_minutes, a.leave_id, a.remarks,
    a.marked_by, a.marked_at
"""


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        staff_id=int(r["staff_id"]),
        shift_id=int(r["shift_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        scheduled_hours_worked=float(r.get("scheduled_hours_worked") or 0),
        check_in_time=normalize_mysql_clock(r.get("check_in_time")),
        check_out_time=normalize_mysql_clock(r.get("check_out_time")),
        actual_hours_worked=float(r.get("actual_hours_worked") or 0),
        is_late_entry=bool(r.get("is_late_entry")),
        late_by_minutes=int(r.get("late_by_minutes") or 0),
        is_early_exit=bool(r.get("is_early_exit")),
        early_by_minutes=int(r.get("early_by_minutes") or 0),
        leave_id=r.get("leave_id"),
        remarks=r.get("remarks"),
        marked_by=r.get("marked_by"),
        marked_at=r.get("marked_at"),
    )


def _where(filters: AttendanceFilter) -> Tuple[str, List[object]]:
    clauses = ["1=1"]
    params: List[object] = []
    if filters.staff_id is not None:
        clauses.append("a.staff_id=%s")
        params.append(int(filters.staff_id))
    if filters.shift_id is not None:
        clauses.append("a.shift_id=%s")
        params.append(int(filters.shift_id))
    if filters.work_date is not None:
        clauses.append("a.work_date=%s")
        params.append(filters.work_date)
    else:
        if filters.start_date is not None:
            clauses.append("a.work_date>=%s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            clauses.append("a.work_date<=%s")
            params.append(filters.end_date)
    if filters.status is not None:
        clauses.append("a.status=%s")
        params.append(filters.status.value)
    if filters.department is not None:
        clauses.append("s.department=%s")
        params.append(filters.department.value)
    return " AND ".join(clauses), params


def _record_params(record: AttendanceRecord) -> tuple:
    return (
        int(record.staff_id),
        int(record.shift_id),
        record.work_date,
        record.status.value,
        record.scheduled_hours_worked,
        record.check_in_time,
        record.check_out_time,
        record.actual_hours_worked,
        int(record.is_late_entry),
        int(record.late_by_minutes),
        int(record.is_early_exit),
        int(record.early_by_minutes),
        record.leave_id,
        record.remarks,
        record.marked_by,
        record.marked_at,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records a WHERE a.attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_staff_and_date(self, staff_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records a WHERE a.staff_id=%s AND a.work_date=%s",
                (int(staff_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(self, record: AttendanceRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        staff_id, shift_id, work_date, status, scheduled_hours_worked,
                        check_in_time, check_out_time, actual_hours_worked,
                        is_late_entry, late_by_minutes, is_early_exit, early_by_minutes,
                        leave_id, remarks, marked_by, marked_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _record_params(record),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise DuplicateRecordError("Attendance already marked for this date") from exc
            raise

    def update(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET staff_id=%s, shift_id=%s, work_date=%s, status=%s, scheduled_hours_worked=%s,
                    check_in_time=%s, check_out_time=%s, actual_hours_worked=%s,
                    is_late_entry=%s, late_by_minutes=%s, is_early_exit=%s, early_by_minutes=%s,
                    leave_id=%s, remarks=%s, marked_by=%s, marked_at=%s
                WHERE attendance_id=%s
                """,
                _record_params(record) + (int(record.attendance_id),),
            )
            return cur.rowcount > 0

    def list_filtered(
        self,
        filters: AttendanceFilter,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = _where(filters)
        sql = f"""
            SELECT {_COLUMNS}
            FROM attendance_records a
            JOIN shifts s ON s.shift_id = a.shift_id
            WHERE {where}
            ORDER BY a.work_date DESC, a.attendance_id DESC
        """
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_filtered(self, filters: AttendanceFilter) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM attendance_records a
                JOIN shifts s ON s.shift_id = a.shift_id
                WHERE {where}
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def aggregate_by_status(self, staff_id: int, start: date, end: date) -> Sequence[StatusTotals]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT status, COUNT(*) AS n, COALESCE(SUM(actual_hours_worked), 0) AS hours
                FROM attendance_records
                WHERE staff_id=%s AND work_date BETWEEN %s AND %s
                GROUP BY status
                ORDER BY status
                """,
                (int(staff_id), start, end),
            )
            return [
                StatusTotals(status=AttendanceStatus(r["status"]), count=int(r["n"]), total_hours=float(r["hours"]))
                for r in fetchall(cur)
            ]

    def daily_summary(self, work_date: date) -> Sequence[StatusTotals]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.department, a.status, COUNT(*) AS n,
                       COALESCE(SUM(a.actual_hours_worked), 0) AS hours
                FROM attendance_records a
                JOIN shifts s ON s.shift_id = a.shift_id
                WHERE a.work_date=%s
                GROUP BY s.department, a.status
                ORDER BY s.department, a.status
                """,
                (work_date,),
            )
            return [
                StatusTotals(
                    status=AttendanceStatus(r["status"]),
                    count=int(r["n"]),
                    total_hours=float(r["hours"]),
                    department=ShiftDepartment(r["department"]),
                )
                for r in fetchall(cur)
            ]
