from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date, require_year
from ..common.paging import Page, PageRequest
from ..common.saga import Saga, saga
from ..common.validators import optional_text, require_enum, require_non_empty
from ..core.constants import (
    LEAVE_ENTITLEMENTS,
    MAX_HANDOVER_LENGTH,
    MAX_REASON_LENGTH,
    MAX_REVIEW_COMMENTS_LENGTH,
    URGENT_LEAVE_WINDOW_DAYS,
)
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import (
    AlreadyCancelledError,
    AuthorizationError,
    ConcurrentModificationError,
    InvalidStateError,
    NotFoundError,
    OverlapError,
    TooLateError,
    ValidationError,
)
from ..shifts.repository import ShiftRepository
from ..shifts.resolver import ShiftCapacityResolver
from ..users.repository import UserRepository
from .model import EmergencyContact, Leave, LeaveFilter, ReplacementAssignment
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


def _as_date(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name} is required")
    return parse_iso_date(str(value))


def _as_int(value, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def _parse_replacements(raw) -> tuple[ReplacementAssignment, ...]:
    if not raw:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("replacements must be a list of {shift_id, staff_id}")
    out = []
    for item in raw:
        if isinstance(item, ReplacementAssignment):
            out.append(item)
            continue
        if not isinstance(item, Mapping):
            raise ValidationError("replacements must be a list of {shift_id, staff_id}")
        out.append(
            ReplacementAssignment(
                shift_id=_as_int(item.get("shift_id"), "Replacement shift_id"),
                staff_id=_as_int(item.get("staff_id"), "Replacement staff_id"),
            )
        )
    if len(set(out)) != len(out):
        raise ValidationError("Duplicate replacement entries")
    return tuple(out)


class LeaveService:
    """Leave applications and their reconciliation with the shift roster.

    Approving a leave takes the staff member off the shifts it covers and puts
    the replacements on; cancelling an approved leave undoes both. Each of
    those runs as a saga: the leave is claimed first with a version check,
    then every shift write is paired with a compensation, so a failure part
    way leaves both the leave and the shifts as they were.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        users: UserRepository,
        shifts: ShiftRepository,
        resolver: ShiftCapacityResolver,
        *,
        clock: Callable[[], datetime] = now_local,
        validate_replacements: bool = True,
    ):
        self._leaves = leaves
        self._users = users
        self._shifts = shifts
        self._resolver = resolver
        self._clock = clock
        self._validate_replacements = bool(validate_replacements)

    def today(self) -> date:
        return self._clock().date()

    # -------- Reads --------
    def _get(self, leave_id) -> Leave:
        leave = self._leaves.get_by_id(_as_int(leave_id, "leave_id"))
        if not leave:
            raise NotFoundError("Leave application not found")
        return leave

    def get_leave(self, *, current_role: Role, current_user_id: int, leave_id) -> Leave:
        leave = self._get(leave_id)
        if current_role != Role.ADMIN and leave.staff_id != int(current_user_id):
            raise AuthorizationError("Access denied")
        return leave

    def list_leaves(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        staff_id=None,
        status=None,
        leave_type=None,
        start_date=None,
        end_date=None,
        page: PageRequest = PageRequest(),
    ) -> Page[Leave]:
        if current_role != Role.ADMIN:
            staff_id = int(current_user_id)
        elif staff_id not in (None, ""):
            staff_id = _as_int(staff_id, "staff_id")
        else:
            staff_id = None

        start = end = None
        if start_date and end_date:
            start, end = parse_iso_date(start_date), parse_iso_date(end_date)

        filters = LeaveFilter(
            staff_id=staff_id,
            status=require_enum(LeaveStatus, status, "Status") if status else None,
            leave_type=require_enum(LeaveType, leave_type, "Leave type") if leave_type else None,
            start_date=start,
            end_date=end,
        )
        items = self._leaves.list_filtered(filters, offset=page.offset, limit=page.limit)
        return Page(items=items, page=page.page, limit=page.limit, total=self._leaves.count_filtered(filters))

    def pending_queue(self, *, current_role: Role) -> dict:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Access denied")
        today = self.today()
        urgent: List[Leave] = []
        regular: List[Leave] = []
        for leave in self._leaves.list_pending():
            if leave.is_emergency or (leave.start_date - today).days <= URGENT_LEAVE_WINDOW_DAYS:
                urgent.append(leave)
            else:
                regular.append(leave)
        return {"urgent": urgent, "regular": regular, "total": len(urgent) + len(regular)}

    def team_calendar(self, *, start_date, end_date, department: Optional[str] = None) -> List[dict]:
        if not start_date or not end_date:
            raise ValidationError("start_date and end_date are required")
        start, end = _as_date(start_date, "start_date"), _as_date(end_date, "end_date")
        if end < start:
            raise ValidationError("end_date must not be before start_date")

        entries = []
        for leave in self._leaves.list_approved_between(start, end):
            staff = self._users.get_by_id(leave.staff_id)
            if not staff:
                continue
            if department and staff.department != department:
                continue
            entries.append(
                {
                    "leave_id": leave.leave_id,
                    "staff_id": leave.staff_id,
                    "staff_name": staff.name,
                    "staff_role": staff.role.value,
                    "leave_type": leave.leave_type.value,
                    "start_date": leave.start_date.isoformat(),
                    "end_date": leave.end_date.isoformat(),
                    "number_of_days": leave.number_of_days,
                    "reason": leave.reason,
                }
            )
        return entries

    def balance(self, *, current_role: Role, current_user_id: int, staff_id, year=None) -> dict:
        staff_id = _as_int(staff_id, "staff_id")
        if current_role != Role.ADMIN and staff_id != int(current_user_id):
            raise AuthorizationError("Access denied")
        year = require_year(_as_int(year, "year")) if year not in (None, "") else self.today().year

        used_by_type = self._leaves.used_days_by_type(staff_id, year)
        balances = {}
        total_entitled = total_used = 0
        for leave_type, entitled in LEAVE_ENTITLEMENTS.items():
            used = int(used_by_type.get(leave_type, 0))
            balances[leave_type.value] = {"entitled": entitled, "used": used, "remaining": entitled - used}
            total_entitled += entitled
            total_used += used

        return {
            "year": year,
            "summary": {
                "total_entitled": total_entitled,
                "total_used": total_used,
                "total_remaining": total_entitled - total_used,
            },
            "leave_types": balances,
        }

    # -------- Writes --------
    def apply(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        leave_type,
        start_date,
        end_date,
        reason: str,
        staff_id=None,
        is_emergency: bool = False,
        handover_notes: Optional[str] = None,
        emergency_contact: Optional[Mapping[str, Any]] = None,
    ) -> Leave:
        # Only admins may file on someone else's behalf.
        if current_role == Role.ADMIN and staff_id not in (None, ""):
            staff_id = _as_int(staff_id, "staff_id")
        else:
            staff_id = int(current_user_id)

        leave_type = require_enum(LeaveType, leave_type, "Leave type")
        start = _as_date(start_date, "Start date")
        end = _as_date(end_date, "End date")
        if end < start:
            raise ValidationError("End date must not be before start date")
        reason = require_non_empty(reason, "Reason")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters")
        if emergency_contact is not None and not isinstance(emergency_contact, Mapping):
            raise ValidationError("emergency_contact must be an object")

        if not self._users.get_by_id(staff_id):
            raise NotFoundError("Staff member not found")

        overlapping = self._leaves.list_overlapping(staff_id, start, end)
        if overlapping:
            raise OverlapError("Leave dates overlap with existing leave request", overlapping)

        affected = tuple(s.shift_id for s in self._shifts.list_for_staff_between(staff_id, start, end))
        draft = Leave(
            leave_id=0,
            staff_id=staff_id,
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            reason=reason,
            status=LeaveStatus.PENDING,
            applied_at=self._clock(),
            is_emergency=bool(is_emergency),
            affected_shift_ids=affected,
            handover_notes=optional_text(handover_notes, "Handover notes", MAX_HANDOVER_LENGTH),
            emergency_contact=EmergencyContact.from_dict(emergency_contact),
        )
        leave_id = self._leaves.create(draft)
        logger.info(
            "leave %s applied for staff %s (%s..%s, %d affected shift(s))",
            leave_id,
            staff_id,
            start,
            end,
            len(affected),
        )
        return self._get(leave_id)

    def _claim(self, s: Saga, original: Leave, updated: Leave) -> None:
        """Persist the leave's new state as the saga's first step."""

        def save() -> None:
            if not self._leaves.update(updated, expected_version=original.version):
                raise ConcurrentModificationError(
                    f"Leave {original.leave_id} was modified by another request, please retry"
                )

        def revert() -> None:
            self._leaves.update(original, expected_version=original.version + 1)

        s.step(f"set leave {original.leave_id} {updated.status.value}", save, revert)

    def _take_off(self, s: Saga, shift_id: int, staff_id: int, actor: int) -> None:
        shift = self._shifts.get_by_id(shift_id)
        if not shift:
            logger.warning("shift %s no longer exists, nothing to remove staff %s from", shift_id, staff_id)
            return
        if staff_id not in shift.assigned_staff:
            return
        s.step(
            f"remove staff {staff_id} from shift {shift_id}",
            lambda: self._resolver.remove(shift_id, [staff_id], updated_by=actor),
            lambda: self._resolver.restore(shift_id, staff_id, updated_by=actor),
        )

    def _put_back(self, s: Saga, shift_id: int, staff_id: int, actor: int) -> None:
        shift = self._resolver.get_shift(shift_id)
        if staff_id in shift.assigned_staff:
            return
        s.step(
            f"restore staff {staff_id} to shift {shift_id}",
            lambda: self._resolver.restore(shift_id, staff_id, updated_by=actor),
            lambda: self._resolver.remove(shift_id, [staff_id], updated_by=actor),
        )

    def review(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        leave_id,
        status,
        review_comments: Optional[str] = None,
        replacements: Optional[Sequence[Any]] = None,
    ) -> Leave:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can review leave applications")

        leave = self._get(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise InvalidStateError("Leave application has already been reviewed")

        decision = require_enum(LeaveStatus, status, "Status")
        if decision not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            raise ValidationError("Status must be Approved or Rejected")

        pairs = _parse_replacements(replacements)
        for pair in pairs:
            if pair.shift_id not in leave.affected_shift_ids:
                raise ValidationError(f"Shift {pair.shift_id} is not affected by this leave")
            if pair.staff_id == leave.staff_id:
                raise ValidationError("A staff member cannot replace themselves")

        actor = int(current_user_id)
        updated = replace(
            leave,
            status=decision,
            reviewed_by=actor,
            reviewed_at=self._clock(),
            review_comments=optional_text(review_comments, "Review comments", MAX_REVIEW_COMMENTS_LENGTH),
            replacements=pairs if decision == LeaveStatus.APPROVED else (),
        )

        with saga(f"review leave {leave.leave_id}") as s:
            self._claim(s, leave, updated)
            if decision == LeaveStatus.APPROVED:
                for shift_id in leave.affected_shift_ids:
                    self._take_off(s, shift_id, leave.staff_id, actor)
                for pair in pairs:
                    s.step(
                        f"add replacement {pair.staff_id} to shift {pair.shift_id}",
                        lambda p=pair: self._resolver.add_replacement(
                            p.shift_id,
                            p.staff_id,
                            check_conflicts=self._validate_replacements,
                            updated_by=actor,
                        ),
                        lambda p=pair: self._resolver.remove(p.shift_id, [p.staff_id], updated_by=actor),
                    )

        logger.info(
            "leave %s %s by user %s (%d shift write(s))",
            leave.leave_id,
            decision.value.lower(),
            actor,
            len(s) - 1,
        )
        return self._get(leave.leave_id)

    def cancel(self, *, current_role: Role, current_user_id: int, leave_id) -> Leave:
        leave = self._get(leave_id)
        if current_role != Role.ADMIN and leave.staff_id != int(current_user_id):
            raise AuthorizationError("Access denied")
        if leave.status == LeaveStatus.CANCELLED:
            raise AlreadyCancelledError("Leave application is already cancelled")
        if leave.status == LeaveStatus.REJECTED:
            raise InvalidStateError("A rejected leave application cannot be cancelled")
        if leave.status == LeaveStatus.APPROVED and self.today() >= leave.start_date:
            raise TooLateError("Cannot cancel approved leave that has already started")

        actor = int(current_user_id)
        was_approved = leave.status == LeaveStatus.APPROVED
        updated = replace(leave, status=LeaveStatus.CANCELLED)

        with saga(f"cancel leave {leave.leave_id}") as s:
            self._claim(s, leave, updated)
            if was_approved:
                # Replacements come off first so the freed slots are there for the restore.
                for pair in leave.replacements:
                    self._take_off(s, pair.shift_id, pair.staff_id, actor)
                for shift_id in leave.affected_shift_ids:
                    if not self._shifts.get_by_id(shift_id):
                        logger.warning("shift %s no longer exists, cannot restore staff %s", shift_id, leave.staff_id)
                        continue
                    self._put_back(s, shift_id, leave.staff_id, actor)

        logger.info("leave %s cancelled by user %s", leave.leave_id, actor)
        return self._get(leave.leave_id)
