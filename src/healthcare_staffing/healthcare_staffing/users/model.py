from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account that can log in and be scheduled.

    Note: plain data object, no DB access here.
    """

    user_id: int
    name: str
    email: str
    phone: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    is_active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role.value,
            "department": self.department,
            "is_active": self.is_active,
        }
