from __future__ import annotations

from typing import Any, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class FormatError(ValidationError):
    """Raised when a clock string is not a well-formed "HH:MM" value."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a shift, staff member, leave or record does not exist."""


class DuplicateRecordError(DomainError):
    """Raised when attendance is already marked for a staff member and date."""


class CapacityExceededError(DomainError):
    """Raised when an assignment would exceed a shift's required staff."""


class AlreadyAssignedError(DomainError):
    """Raised when a staff member is already on the shift."""


class ScheduleConflictError(DomainError):
    """Raised when candidates hold overlapping shifts.

    ``conflicts`` holds one entry per conflicting candidate.
    """

    def __init__(self, message: str, conflicts: Sequence[dict[str, Any]]):
        super().__init__(message)
        self.conflicts = list(conflicts)


class OverlapError(DomainError):
    """Raised when a leave overlaps another pending or approved leave."""

    def __init__(self, message: str, overlapping: Sequence[Any]):
        super().__init__(message)
        self.overlapping = list(overlapping)


class InvalidStateError(DomainError):
    """Raised when a leave is not in a state that allows the transition."""


class AlreadyCancelledError(InvalidStateError):
    pass


class TooLateError(InvalidStateError):
    """Raised when an approved leave has already started."""


class ConcurrentModificationError(DomainError):
    """Raised when an entity changed between read and write."""
