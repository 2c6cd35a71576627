from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_PAGE_SIZE
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.resolver import ShiftCapacityResolver
from .shifts.service import ShiftService
from .staff.mysql_staff_repository import MySQLStaffRepository
from .staff.repository import StaffRepository
from .staff.service import StaffRecordService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    staff_repo: StaffRepository
    shifts_repo: ShiftRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository

    auth_service: AuthService
    user_service: UserService
    staff_service: StaffRecordService
    shift_resolver: ShiftCapacityResolver
    shift_service: ShiftService
    attendance_service: AttendanceService
    leave_service: LeaveService

    default_page_size: int = DEFAULT_PAGE_SIZE


def wire_container(
    *,
    users_repo: UserRepository,
    staff_repo: StaffRepository,
    shifts_repo: ShiftRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    conn: Optional[DatabaseConnection] = None,
    clock: Callable[[], datetime] = now_local,
    validate_replacements: bool = True,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> Container:
    """Build services on top of already constructed repositories."""
    resolver = ShiftCapacityResolver(shifts_repo, users_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        staff_repo=staff_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        staff_service=StaffRecordService(staff_repo),
        shift_resolver=resolver,
        shift_service=ShiftService(shifts_repo, resolver),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            shifts_repo,
            leaves_repo,
            strategy_factory=AttendanceStrategyFactory(),
            clock=clock,
        ),
        leave_service=LeaveService(
            leaves_repo,
            users_repo,
            shifts_repo,
            resolver,
            clock=clock,
            validate_replacements=validate_replacements,
        ),
        default_page_size=int(default_page_size),
    )


def build_container(
    *,
    db_config: dict,
    validate_replacements: bool = True,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        staff_repo=MySQLStaffRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        conn=conn,
        validate_replacements=validate_replacements,
        default_page_size=default_page_size,
    )
