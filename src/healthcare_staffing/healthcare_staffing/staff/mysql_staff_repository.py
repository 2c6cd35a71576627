from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import StaffDepartment, StaffPosition
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Address, StaffFilter, StaffRecord
from .repository import StaffRepository

_COLUMNS = """
    staff_id, employee_id, first_name, last_name, email, phone, department,
    position, date_of_joining, salary, is_active,
    street, city, state, zip_code, country
"""


def _row_to_record(r: Dict[str, Any]) -> StaffRecord:
    return StaffRecord(
        staff_id=int(r["staff_id"]),
        employee_id=r["employee_id"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        email=r["email"],
        phone=r["phone"],
        department=StaffDepartment(r["department"]),
        position=StaffPosition(r["position"]),
        date_of_joining=r["date_of_joining"],
        salary=float(r["salary"]),
        is_active=bool(r.get("is_active", 1)),
        address=Address(
            street=r.get("street"),
            city=r.get("city"),
            state=r.get("state"),
            zip_code=r.get("zip_code"),
            country=r.get("country"),
        ),
    )


def _record_params(record: StaffRecord) -> tuple:
    a = record.address
    return (
        record.employee_id,
        record.first_name,
        record.last_name,
        record.email,
        record.phone,
        record.department.value,
        record.position.value,
        record.date_of_joining,
        record.salary,
        int(record.is_active),
        a.street,
        a.city,
        a.state,
        a.zip_code,
        a.country,
    )


def _where(filters: StaffFilter) -> Tuple[str, List[object]]:
    clauses = ["1=1"]
    params: List[object] = []
    if filters.department is not None:
        clauses.append("department=%s")
        params.append(filters.department.value)
    if filters.position is not None:
        clauses.append("position=%s")
        params.append(filters.position.value)
    if filters.is_active is not None:
        clauses.append("is_active=%s")
        params.append(int(filters.is_active))
    return " AND ".join(clauses), params


def _duplicate(exc: IntegrityError) -> DuplicateRecordError:
    return DuplicateRecordError("A staff record with this employee id or email already exists")


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, staff_id: int) -> Optional[StaffRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff_records WHERE staff_id=%s", (int(staff_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_filtered(self, filters: StaffFilter, *, offset: int = 0, limit: Optional[int] = None) -> Sequence[StaffRecord]:
        where, params = _where(filters)
        sql = f"SELECT {_COLUMNS} FROM staff_records WHERE {where} ORDER BY last_name, first_name, staff_id"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def count_filtered(self, filters: StaffFilter) -> int:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM staff_records WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def create(self, record: StaffRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO staff_records(
                        employee_id, first_name, last_name, email, phone, department,
                        position, date_of_joining, salary, is_active,
                        street, city, state, zip_code, country
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _record_params(record),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise _duplicate(exc) from exc
            raise

    def update(self, record: StaffRecord) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE staff_records
                    SET employee_id=%s, first_name=%s, last_name=%s, email=%s, phone=%s,
                        department=%s, position=%s, date_of_joining=%s, salary=%s, is_active=%s,
                        street=%s, city=%s, state=%s, zip_code=%s, country=%s
                    WHERE staff_id=%s
                    """,
                    _record_params(record) + (int(record.staff_id),),
                )
                return cur.rowcount > 0
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise _duplicate(exc) from exc
            raise

    def delete(self, staff_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM staff_records WHERE staff_id=%s", (int(staff_id),))
            return cur.rowcount > 0
