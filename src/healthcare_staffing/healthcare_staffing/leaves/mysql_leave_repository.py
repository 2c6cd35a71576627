from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import year_bounds
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import OverlapError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, placeholders
from .model import BLOCKING_STATUSES, EmergencyContact, Leave, LeaveFilter, ReplacementAssignment
from .repository import LeaveRepository

_COLUMNS = """
    l.leave_id, l.staff_id, l.leave_type, l.start_date, l.end_date, l.reason,
    l.status, l.applied_at, l.is_emergency, l.reviewed_by, l.reviewed_at,
    l.review_comments, l.handover_notes, l.emergency_contact, l.version
"""

_OVERLAP_SQL = f"""
    SELECT {_COLUMNS}
    FROM leaves l
    WHERE l.staff_id=%s
      AND l.status IN ({placeholders(BLOCKING_STATUSES)})
      AND l.start_date<=%s AND l.end_date>=%s
    ORDER BY l.start_date
"""


def _overlap_params(staff_id: int, start: date, end: date) -> tuple:
    return (int(staff_id), *[s.value for s in BLOCKING_STATUSES], end, start)


def _where(filters: LeaveFilter) -> Tuple[str, List[object]]:
    clauses = ["1=1"]
    params: List[object] = []
    if filters.staff_id is not None:
        clauses.append("l.staff_id=%s")
        params.append(int(filters.staff_id))
    if filters.status is not None:
        clauses.append("l.status=%s")
        params.append(filters.status.value)
    if filters.leave_type is not None:
        clauses.append("l.leave_type=%s")
        params.append(filters.leave_type.value)
    if filters.start_date is not None and filters.end_date is not None:
        clauses.append("l.start_date<=%s AND l.end_date>=%s")
        params += [filters.end_date, filters.start_date]
    return " AND ".join(clauses), params


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _hydrate(cur, rows: List[Dict[str, Any]]) -> List[Leave]:
        ids = [int(r["leave_id"]) for r in rows]
        affected: Dict[int, List[int]] = {i: [] for i in ids}
        replacements: Dict[int, List[ReplacementAssignment]] = {i: [] for i in ids}
        if ids:
            cur.execute(
                f"""
                SELECT leave_id, shift_id FROM leave_affected_shifts
                WHERE leave_id IN ({placeholders(ids)})
                ORDER BY leave_id, shift_id
                """,
                tuple(ids),
            )
            for r in fetchall(cur):
                affected[int(r["leave_id"])].append(int(r["shift_id"]))
            cur.execute(
                f"""
                SELECT leave_id, shift_id, staff_id FROM leave_replacements
                WHERE leave_id IN ({placeholders(ids)})
                ORDER BY leave_id, position
                """,
                tuple(ids),
            )
            for r in fetchall(cur):
                replacements[int(r["leave_id"])].append(
                    ReplacementAssignment(shift_id=int(r["shift_id"]), staff_id=int(r["staff_id"]))
                )

        return [
            Leave(
                leave_id=int(r["leave_id"]),
                staff_id=int(r["staff_id"]),
                leave_type=LeaveType(r["leave_type"]),
                start_date=r["start_date"],
                end_date=r["end_date"],
                reason=r["reason"],
                status=LeaveStatus(r["status"]),
                applied_at=r.get("applied_at"),
                is_emergency=bool(r.get("is_emergency")),
                affected_shift_ids=tuple(affected[int(r["leave_id"])]),
                replacements=tuple(replacements[int(r["leave_id"])]),
                reviewed_by=r.get("reviewed_by"),
                reviewed_at=r.get("reviewed_at"),
                review_comments=r.get("review_comments"),
                handover_notes=r.get("handover_notes"),
                emergency_contact=EmergencyContact.from_dict(load_json(r.get("emergency_contact"))),
                version=int(r.get("version") or 0),
            )
            for r in rows
        ]

    def get_by_id(self, leave_id: int) -> Optional[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leaves l WHERE l.leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def list_overlapping(self, staff_id: int, start: date, end: date) -> Sequence[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_OVERLAP_SQL, _overlap_params(staff_id, start, end))
            return self._hydrate(cur, fetchall(cur))

    def create(self, leave: Leave) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the staff member serializes concurrent applications.
            cur.execute("SELECT user_id FROM users WHERE user_id=%s FOR UPDATE", (int(leave.staff_id),))
            fetchone(cur)
            cur.execute(_OVERLAP_SQL, _overlap_params(leave.staff_id, leave.start_date, leave.end_date))
            overlapping = self._hydrate(cur, fetchall(cur))
            if overlapping:
                raise OverlapError("Leave dates overlap with existing leave request", overlapping)

            cur.execute(
                """
                INSERT INTO leaves(
                    staff_id, leave_type, start_date, end_date, reason, status, applied_at,
                    is_emergency, handover_notes, emergency_contact, version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    int(leave.staff_id),
                    leave.leave_type.value,
                    leave.start_date,
                    leave.end_date,
                    leave.reason,
                    leave.status.value,
                    leave.applied_at,
                    int(leave.is_emergency),
                    leave.handover_notes,
                    dump_json(leave.emergency_contact.to_dict() if leave.emergency_contact else None),
                ),
            )
            leave_id = int(cur.lastrowid)
            if leave.affected_shift_ids:
                cur.executemany(
                    "INSERT INTO leave_affected_shifts(leave_id, shift_id) VALUES(%s,%s)",
                    [(leave_id, int(sid)) for sid in leave.affected_shift_ids],
                )
            return leave_id

    def update(self, leave: Leave, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leaves
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_comments=%s,
                    version=version+1
                WHERE leave_id=%s AND version=%s
                """,
                (
                    leave.status.value,
                    leave.reviewed_by,
                    leave.reviewed_at,
                    leave.review_comments,
                    int(leave.leave_id),
                    int(expected_version),
                ),
            )
            if cur.rowcount == 0:
                return False

            cur.execute("DELETE FROM leave_replacements WHERE leave_id=%s", (int(leave.leave_id),))
            if leave.replacements:
                cur.executemany(
                    "INSERT INTO leave_replacements(leave_id, shift_id, staff_id, position) VALUES(%s,%s,%s,%s)",
                    [(int(leave.leave_id), r.shift_id, r.staff_id, pos) for pos, r in enumerate(leave.replacements)],
                )
            return True

    def list_filtered(self, filters: LeaveFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[Leave]:
        where, params = _where(filters)
        sql = f"SELECT {_COLUMNS} FROM leaves l WHERE {where} ORDER BY l.applied_at DESC, l.leave_id DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return self._hydrate(cur, fetchall(cur))

    def count_filtered(self, filters: LeaveFilter) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM leaves l WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_pending(self) -> Sequence[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leaves l WHERE l.status=%s ORDER BY l.applied_at, l.leave_id",
                (LeaveStatus.PENDING.value,),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_approved_between(self, start: date, end: date) -> Sequence[Leave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM leaves l
                WHERE l.status=%s AND l.start_date<=%s AND l.end_date>=%s
                ORDER BY l.start_date, l.leave_id
                """,
                (LeaveStatus.APPROVED.value, end, start),
            )
            return self._hydrate(cur, fetchall(cur))

    def used_days_by_type(self, staff_id: int, year: int) -> Dict[LeaveType, int]:
        first, last = year_bounds(int(year))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_type, COALESCE(SUM(DATEDIFF(end_date, start_date) + 1), 0) AS days
                FROM leaves
                WHERE staff_id=%s AND status=%s AND start_date BETWEEN %s AND %s
                GROUP BY leave_type
                """,
                (int(staff_id), LeaveStatus.APPROVED.value, first, last),
            )
            return {LeaveType(r["leave_type"]): int(r["days"]) for r in fetchall(cur)}
