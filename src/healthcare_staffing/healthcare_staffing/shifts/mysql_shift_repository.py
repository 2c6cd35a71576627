from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import ShiftDepartment, ShiftStatus, ShiftType
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_clock, placeholders
from .model import Shift, StaffSet
from .repository import ShiftFilter, ShiftRepository

_COLUMNS = """
    s.shift_id, s.shift_type, s.start_time, s.end_time, s.department,
    s.required_staff, s.status, s.shift_date, s.description,
    s.created_by, s.updated_by, s.version
"""


def _where(filters: ShiftFilter) -> Tuple[str, List[object]]:
    clauses = ["1=1"]
    params: List[object] = []
    if filters.shift_type is not None:
        clauses.append("s.shift_type=%s")
        params.append(filters.shift_type.value)
    if filters.department is not None:
        clauses.append("s.department=%s")
        params.append(filters.department.value)
    if filters.status is not None:
        clauses.append("s.status=%s")
        params.append(filters.status.value)
    if filters.shift_date is not None:
        clauses.append("s.shift_date=%s")
        params.append(filters.shift_date)
    return " AND ".join(clauses), params


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load_staff(cur, shift_ids: Sequence[int]) -> Dict[int, List[int]]:
        out: Dict[int, List[int]] = {int(i): [] for i in shift_ids}
        if not shift_ids:
            return out
        cur.execute(
            f"""
            SELECT shift_id, user_id
            FROM shift_assignments
            WHERE shift_id IN ({placeholders(shift_ids)})
            ORDER BY shift_id, position
            """,
            tuple(int(i) for i in shift_ids),
        )
        for r in fetchall(cur):
            out[int(r["shift_id"])].append(int(r["user_id"]))
        return out

    def _hydrate(self, cur, rows: List[Dict[str, Any]]) -> List[Shift]:
        staff = self._load_staff(cur, [int(r["shift_id"]) for r in rows])
        return [
            Shift(
                shift_id=int(r["shift_id"]),
                shift_type=ShiftType(r["shift_type"]),
                start_time=normalize_mysql_clock(r["start_time"]),
                end_time=normalize_mysql_clock(r["end_time"]),
                department=ShiftDepartment(r["department"]),
                required_staff=int(r["required_staff"]),
                assigned_staff=StaffSet(staff[int(r["shift_id"])]),
                status=ShiftStatus(r["status"]),
                shift_date=r.get("shift_date"),
                description=r.get("description"),
                created_by=r.get("created_by"),
                updated_by=r.get("updated_by"),
                version=int(r.get("version") or 0),
            )
            for r in rows
        ]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts s WHERE s.shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def list_filtered(self, filters: ShiftFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[Shift]:
        where, params = _where(filters)
        sql = f"SELECT {_COLUMNS} FROM shifts s WHERE {where} ORDER BY s.shift_type, s.start_time, s.shift_id"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return self._hydrate(cur, fetchall(cur))

    def count_filtered(self, filters: ShiftFilter) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM shifts s WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_for_staff(self, staff_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts s
                JOIN shift_assignments a ON a.shift_id = s.shift_id
                WHERE a.user_id=%s
                ORDER BY s.shift_type, s.start_time, s.shift_id
                """,
                (int(staff_id),),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_for_staff_between(self, staff_id: int, start: date, end: date) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts s
                JOIN shift_assignments a ON a.shift_id = s.shift_id
                WHERE a.user_id=%s AND s.shift_date BETWEEN %s AND %s
                ORDER BY s.shift_date, s.start_time, s.shift_id
                """,
                (int(staff_id), start, end),
            )
            return self._hydrate(cur, fetchall(cur))

    def create(
        self,
        *,
        shift_type: ShiftType,
        start_time: str,
        end_time: str,
        department: ShiftDepartment,
        required_staff: int,
        shift_date: Optional[date],
        description: Optional[str],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(
                    shift_type, start_time, end_time, department, required_staff,
                    status, shift_date, description, created_by, version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    shift_type.value,
                    start_time,
                    end_time,
                    department.value,
                    int(required_staff),
                    ShiftStatus.OPEN.value,
                    shift_date,
                    description,
                    int(created_by),
                ),
            )
            return int(cur.lastrowid)

    def update(self, shift: Shift, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET shift_type=%s, start_time=%s, end_time=%s, department=%s,
                    required_staff=%s, status=%s, shift_date=%s, description=%s,
                    updated_by=%s, version=version+1
                WHERE shift_id=%s AND version=%s
                """,
                (
                    shift.shift_type.value,
                    shift.start_time,
                    shift.end_time,
                    shift.department.value,
                    int(shift.required_staff),
                    shift.status.value,
                    shift.shift_date,
                    shift.description,
                    shift.updated_by,
                    int(shift.shift_id),
                    int(expected_version),
                ),
            )
            if cur.rowcount == 0:
                return False

            cur.execute("DELETE FROM shift_assignments WHERE shift_id=%s", (int(shift.shift_id),))
            staff = shift.assigned_staff.to_list()
            if staff:
                cur.executemany(
                    "INSERT INTO shift_assignments(shift_id, user_id, position) VALUES(%s,%s,%s)",
                    [(int(shift.shift_id), int(uid), pos) for pos, uid in enumerate(staff)],
                )
            return True

    def delete(self, shift_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM shift_assignments WHERE shift_id=%s", (int(shift_id),))
                cur.execute("DELETE FROM shifts WHERE shift_id=%s", (int(shift_id),))
                return cur.rowcount > 0
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_ROW_IS_REFERENCED_2:
                raise ValidationError("Shift has attendance records and cannot be deleted") from exc
            raise
