"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import LeaveType

MINUTES_PER_DAY = 24 * 60
NOON_MINUTES = 12 * 60

DEFAULT_REQUIRED_STAFF = 5
MAX_REQUIRED_STAFF = 50
MAX_DESCRIPTION_LENGTH = 500
MAX_REMARKS_LENGTH = 500
MAX_REASON_LENGTH = 1000
MAX_HANDOVER_LENGTH = 1000
MAX_REVIEW_COMMENTS_LENGTH = 500

DEFAULT_SESSION_DAYS = 7
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Pending leaves starting within this many days are shown as urgent.
URGENT_LEAVE_WINDOW_DAYS = 2

LEAVE_ENTITLEMENTS: dict[LeaveType, int] = {
    LeaveType.SICK: 12,
    LeaveType.VACATION: 21,
    LeaveType.EMERGENCY: 5,
    LeaveType.PERSONAL: 3,
    LeaveType.MATERNITY: 90,
    LeaveType.PATERNITY: 15,
    LeaveType.COMPENSATORY: 10,
    LeaveType.BEREAVEMENT: 3,
}
