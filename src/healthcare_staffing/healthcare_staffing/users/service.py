from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_enum, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated. Please contact support.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, name=user.name, role=user.role)


class UserService:
    """Use case: manage users (admin) and look up staff."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_account(
        self,
        *,
        current_role: Role,
        name: str,
        email: str,
        phone: str,
        password: str,
        role,
        department: Optional[str] = None,
    ) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can create accounts")

        name = require_non_empty(name, "Name")
        email = require_non_empty(email, "Email").lower()
        phone = require_non_empty(phone, "Phone")
        require_min_length(password, "Password", 6)
        role = require_enum(Role, role, "Role")
        if "@" not in email:
            raise ValidationError("Email is not valid")

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered")

        user_id = self._users.create_user(
            name=name,
            email=email,
            phone=phone,
            password_hash=generate_password_hash(password),
            role=role,
            department=(department or "").strip() or None,
        )
        logger.info("created user %s with role %s", user_id, role.value)
        return self.get_user(user_id)

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def change_password(self, *, user_id: int, current_password: str, new_password: str) -> None:
        """Replace the caller's password after checking the current one."""
        user = self.get_user(user_id)
        require_min_length(new_password, "New password", 6)
        try:
            ok = check_password_hash(user.password_hash, current_password or "")
        except ValueError:
            ok = False
        if not ok:
            raise AuthenticationError("Current password is incorrect")

        self._users.update_password(user.user_id, generate_password_hash(new_password))
        logger.info("user %s changed their password", user.user_id)

    def view_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> User:
        if current_role != Role.ADMIN and int(user_id) != int(current_user_id):
            raise AuthorizationError("Access denied")
        return self.get_user(user_id)

    def list_users(self, *, role: Optional[str] = None) -> Sequence[User]:
        if role:
            return self._users.list_by_role(require_enum(Role, role, "Role"))
        return self._users.list_all()

    def set_active(self, *, current_role: Role, current_user_id: int, user_id: int, is_active: bool) -> User:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can change account status")
        if int(user_id) == int(current_user_id) and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        self.get_user(user_id)
        self._users.set_active(int(user_id), is_active=bool(is_active))
        return self.get_user(user_id)
