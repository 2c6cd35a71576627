from __future__ import annotations

from typing import Any, Dict, Tuple, Type

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AlreadyAssignedError,
    AuthenticationError,
    AuthorizationError,
    CapacityExceededError,
    ConcurrentModificationError,
    DomainError,
    DuplicateRecordError,
    InvalidStateError,
    NotFoundError,
    OverlapError,
    ScheduleConflictError,
    ValidationError,
)

# Most specific first; the first isinstance match wins.
_STATUS: Tuple[Tuple[Type[DomainError], int, str], ...] = (
    (AuthenticationError, 401, "UNAUTHORIZED"),
    (AuthorizationError, 403, "FORBIDDEN"),
    (NotFoundError, 404, "NOT_FOUND"),
    (DuplicateRecordError, 409, "DUPLICATE_RECORD"),
    (ScheduleConflictError, 409, "SCHEDULE_CONFLICT"),
    (OverlapError, 409, "LEAVE_OVERLAP"),
    (ConcurrentModificationError, 409, "CONCURRENT_MODIFICATION"),
    (CapacityExceededError, 400, "CAPACITY_EXCEEDED"),
    (AlreadyAssignedError, 400, "ALREADY_ASSIGNED"),
    (InvalidStateError, 400, "INVALID_STATE"),
    (ValidationError, 400, "VALIDATION_ERROR"),
)


def ok(data=None, status=200, **meta):
    payload: Dict[str, Any] = {"success": True, "data": data}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status


def fail(message="Bad Request", status=400, code=None, detail=None):
    err: Dict[str, Any] = {"message": message}
    if code:
        err["code"] = code
    if detail:
        err["detail"] = detail
    return jsonify({"success": False, "error": err}), status


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def status_for(exc: DomainError) -> Tuple[int, str]:
    for cls, status, code in _STATUS:
        if isinstance(exc, cls):
            return status, code
    return 400, "DOMAIN_ERROR"


def _detail(exc: DomainError):
    if isinstance(exc, ScheduleConflictError):
        return {"conflicts": exc.conflicts}
    if isinstance(exc, OverlapError):
        return {"overlapping_leaves": [_leave_summary(leave) for leave in exc.overlapping]}
    return None


def _leave_summary(leave) -> Any:
    if not hasattr(leave, "leave_id"):
        return leave
    return {
        "leave_id": leave.leave_id,
        "leave_type": leave.leave_type.value,
        "start_date": leave.start_date.isoformat(),
        "end_date": leave.end_date.isoformat(),
        "status": leave.status.value,
    }


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        status, code = status_for(e)
        return fail(str(e), status=status, code=code, detail=_detail(e))

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(Exception)
    def _500(e: Exception):
        app.logger.exception(e)
        return fail("Internal server error", status=500)
