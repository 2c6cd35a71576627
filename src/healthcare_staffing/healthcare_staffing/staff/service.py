from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.paging import Page, PageRequest
from ..common.validators import require_enum, require_non_empty
from ..core.enums import Role, StaffDepartment, StaffPosition
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Address, StaffFilter, StaffRecord
from .repository import StaffRepository

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")
_UPDATABLE = {
    "employee_id",
    "first_name",
    "last_name",
    "email",
    "phone",
    "department",
    "position",
    "date_of_joining",
    "salary",
    "is_active",
    "address",
}


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only admins can manage staff records")


def _email(value) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Email is not valid")
    return email


def _salary(value) -> float:
    try:
        salary = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Salary must be a number")
    if salary < 0:
        raise ValidationError("Salary must not be negative")
    return salary


def _joining_date(value) -> date:
    if isinstance(value, date):
        return value
    return parse_iso_date(require_non_empty(value, "Date of joining"))


def _address(value: Optional[Mapping[str, Any]]) -> Address:
    if value is None:
        return Address()
    if not isinstance(value, Mapping):
        raise ValidationError("Address must be an object")
    return Address(**{k: (str(value[k]).strip() or None) if value.get(k) else None for k in _ADDRESS_FIELDS})


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


class StaffRecordService:
    def __init__(self, records: StaffRepository):
        self._records = records

    def get_record(self, staff_id) -> StaffRecord:
        record = self._records.get_by_id(int(staff_id))
        if not record:
            raise NotFoundError("Staff member not found")
        return record

    def list_records(
        self,
        *,
        department: Optional[str] = None,
        position: Optional[str] = None,
        is_active=None,
        page: PageRequest = PageRequest(),
    ) -> Page[StaffRecord]:
        filters = StaffFilter(
            department=require_enum(StaffDepartment, department, "Department") if department else None,
            position=require_enum(StaffPosition, position, "Position") if position else None,
            is_active=_as_bool(is_active) if is_active not in (None, "") else None,
        )
        items = self._records.list_filtered(filters, offset=page.offset, limit=page.limit)
        return Page(items=items, page=page.page, limit=page.limit, total=self._records.count_filtered(filters))

    def list_by_department(self, department: str):
        filters = StaffFilter(department=require_enum(StaffDepartment, department, "Department"), is_active=True)
        return self._records.list_filtered(filters)

    def create_record(self, *, current_role: Role, data: Mapping[str, Any]) -> StaffRecord:
        _require_admin(current_role)
        draft = StaffRecord(
            staff_id=0,
            employee_id=require_non_empty(data.get("employee_id"), "Employee ID"),
            first_name=require_non_empty(data.get("first_name"), "First name"),
            last_name=require_non_empty(data.get("last_name"), "Last name"),
            email=_email(data.get("email")),
            phone=require_non_empty(data.get("phone"), "Phone"),
            department=require_enum(StaffDepartment, data.get("department"), "Department"),
            position=require_enum(StaffPosition, data.get("position"), "Position"),
            date_of_joining=_joining_date(data.get("date_of_joining")),
            salary=_salary(data.get("salary")),
            is_active=_as_bool(data.get("is_active", True)),
            address=_address(data.get("address")),
        )
        staff_id = self._records.create(draft)
        logger.info("staff record %s created (%s)", staff_id, draft.employee_id)
        return self.get_record(staff_id)

    def update_record(self, *, current_role: Role, staff_id, changes: Mapping[str, Any]) -> StaffRecord:
        _require_admin(current_role)
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Unknown staff fields: {', '.join(sorted(unknown))}")

        record = self.get_record(staff_id)
        fields: Dict[str, Any] = {}
        for key in ("employee_id", "first_name", "last_name", "phone"):
            if key in changes:
                fields[key] = require_non_empty(changes[key], key.replace("_", " ").capitalize())
        if "email" in changes:
            fields["email"] = _email(changes["email"])
        if "department" in changes:
            fields["department"] = require_enum(StaffDepartment, changes["department"], "Department")
        if "position" in changes:
            fields["position"] = require_enum(StaffPosition, changes["position"], "Position")
        if "date_of_joining" in changes:
            fields["date_of_joining"] = _joining_date(changes["date_of_joining"])
        if "salary" in changes:
            fields["salary"] = _salary(changes["salary"])
        if "is_active" in changes:
            fields["is_active"] = _as_bool(changes["is_active"])
        if "address" in changes:
            fields["address"] = _address(changes["address"])

        if not self._records.update(replace(record, **fields)):
            raise NotFoundError("Staff member not found")
        return self.get_record(record.staff_id)

    def delete_record(self, *, current_role: Role, staff_id) -> None:
        _require_admin(current_role)
        if not self._records.delete(int(staff_id)):
            raise NotFoundError("Staff member not found")
        logger.info("staff record %s deleted", staff_id)
