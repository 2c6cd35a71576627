from __future__ import annotations

from functools import wraps

from flask import session

from ..core.enums import Role
from .http import fail


def current_role() -> Role:
    return Role(session["role"])


def current_user_id() -> int:
    return int(session["user_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", status=401, code="UNAUTHORIZED")
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", status=401, code="UNAUTHORIZED")
        if session.get("role") != Role.ADMIN.value:
            return fail("Forbidden", status=403, code="FORBIDDEN")
        return view(*args, **kwargs)

    return wrapper
