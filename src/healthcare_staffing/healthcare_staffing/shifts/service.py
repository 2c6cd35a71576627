from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, List, Mapping, Optional, Sequence

from ..common import time_window
from ..common.datetime_utils import parse_iso_date
from ..common.paging import Page, PageRequest
from ..common.validators import optional_text, require_enum, require_int_range
from ..core.constants import DEFAULT_REQUIRED_STAFF, MAX_DESCRIPTION_LENGTH, MAX_REQUIRED_STAFF
from ..core.enums import Role, ShiftDepartment, ShiftStatus, ShiftType
from ..core.exceptions import AuthorizationError, CapacityExceededError, NotFoundError, ValidationError
from .model import Shift, derive_status
from .repository import ShiftFilter, ShiftRepository
from .resolver import ShiftCapacityResolver

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "shift_type",
    "start_time",
    "end_time",
    "department",
    "required_staff",
    "status",
    "shift_date",
    "description",
}


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Only admins can manage shifts")


def _as_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


class ShiftService:
    """Admin use cases around shifts; assignment rules live in the resolver."""

    def __init__(self, shifts: ShiftRepository, resolver: ShiftCapacityResolver):
        self._shifts = shifts
        self._resolver = resolver

    def create_shift(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        shift_type,
        start_time: str,
        end_time: str,
        department,
        required_staff=DEFAULT_REQUIRED_STAFF,
        shift_date=None,
        description: Optional[str] = None,
    ) -> Shift:
        _require_admin(current_role)

        shift_id = self._shifts.create(
            shift_type=require_enum(ShiftType, shift_type, "Shift type"),
            start_time=time_window.normalize_clock(start_time),
            end_time=time_window.normalize_clock(end_time),
            department=require_enum(ShiftDepartment, department, "Department"),
            required_staff=require_int_range(required_staff, "Required staff", 1, MAX_REQUIRED_STAFF),
            shift_date=_as_date(shift_date),
            description=optional_text(description, "Description", MAX_DESCRIPTION_LENGTH),
            created_by=int(current_user_id),
        )
        logger.info("shift %s created by user %s", shift_id, current_user_id)
        return self._resolver.get_shift(shift_id)

    def update_shift(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        shift_id: int,
        changes: Mapping[str, Any],
    ) -> Shift:
        _require_admin(current_role)

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Unknown shift fields: {', '.join(sorted(unknown))}")

        shift = self._resolver.get_shift(shift_id)
        fields: dict[str, Any] = {"updated_by": int(current_user_id)}
        if "shift_type" in changes:
            fields["shift_type"] = require_enum(ShiftType, changes["shift_type"], "Shift type")
        if "start_time" in changes:
            fields["start_time"] = time_window.normalize_clock(changes["start_time"])
        if "end_time" in changes:
            fields["end_time"] = time_window.normalize_clock(changes["end_time"])
        if "department" in changes:
            fields["department"] = require_enum(ShiftDepartment, changes["department"], "Department")
        if "shift_date" in changes:
            fields["shift_date"] = _as_date(changes["shift_date"])
        if "description" in changes:
            fields["description"] = optional_text(changes["description"], "Description", MAX_DESCRIPTION_LENGTH)
        if "required_staff" in changes:
            capacity = require_int_range(changes["required_staff"], "Required staff", 1, MAX_REQUIRED_STAFF)
            if capacity < len(shift.assigned_staff):
                raise CapacityExceededError(
                    f"Shift already has {len(shift.assigned_staff)} staff assigned; "
                    f"remove staff before lowering capacity to {capacity}"
                )
            fields["required_staff"] = capacity

        # An explicit status is the only way to leave Closed; Full/Open always follow the count.
        current = shift.status
        if "status" in changes:
            requested = require_enum(ShiftStatus, changes["status"], "Status")
            current = ShiftStatus.CLOSED if requested == ShiftStatus.CLOSED else ShiftStatus.FULL
        capacity = fields.get("required_staff", shift.required_staff)
        fields["status"] = derive_status(current, len(shift.assigned_staff), capacity)

        return self._resolver.save(shift, replace(shift, **fields))

    def delete_shift(self, *, current_role: Role, shift_id: int) -> None:
        _require_admin(current_role)
        if not self._shifts.delete(int(shift_id)):
            raise NotFoundError(f"Shift {shift_id} not found")
        logger.info("shift %s deleted", shift_id)

    def get_shift(self, shift_id: int) -> Shift:
        return self._resolver.get_shift(shift_id)

    def list_shifts(
        self,
        *,
        shift_type: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
        shift_date: Optional[str] = None,
        page: PageRequest = PageRequest(),
    ) -> Page[Shift]:
        filters = ShiftFilter(
            shift_type=require_enum(ShiftType, shift_type, "Shift type") if shift_type else None,
            department=require_enum(ShiftDepartment, department, "Department") if department else None,
            status=require_enum(ShiftStatus, status, "Status") if status else None,
            shift_date=_as_date(shift_date),
        )
        items = self._shifts.list_filtered(filters, offset=page.offset, limit=page.limit)
        return Page(items=items, page=page.page, limit=page.limit, total=self._shifts.count_filtered(filters))

    def list_staff_shifts(self, staff_id: int) -> Sequence[Shift]:
        return self._shifts.list_for_staff(int(staff_id))

    def assign_staff(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        shift_id: int,
        staff_ids: Sequence[int],
    ) -> Shift:
        _require_admin(current_role)
        return self._resolver.assign(shift_id, staff_ids, updated_by=int(current_user_id))

    def remove_staff(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        shift_id: int,
        staff_ids: Sequence[int],
    ) -> Shift:
        _require_admin(current_role)
        return self._resolver.remove(shift_id, staff_ids, updated_by=int(current_user_id))

    def check_conflicts(self, *, staff_id: int, start_time: str, end_time: str, on_date=None) -> List[Shift]:
        if not staff_id or not start_time or not end_time:
            raise ValidationError("staff_id, start_time and end_time are required")
        try:
            staff_id = int(staff_id)
        except (TypeError, ValueError):
            raise ValidationError("staff_id must be an integer")
        return self._resolver.find_conflicts(staff_id, start_time, end_time, on_date=_as_date(on_date))
