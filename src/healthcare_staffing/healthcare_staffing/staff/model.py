from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from ..core.enums import StaffDepartment, StaffPosition


@dataclass(frozen=True)
class Address:
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class StaffRecord:
    """HR record of an employee (independent of the login account)."""

    staff_id: int
    employee_id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    department: StaffDepartment
    position: StaffPosition
    date_of_joining: date
    salary: float
    is_active: bool = True
    address: Address = Address()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["department"] = self.department.value
        data["position"] = self.position.value
        data["date_of_joining"] = self.date_of_joining.isoformat()
        data["full_name"] = self.full_name
        return data


@dataclass(frozen=True)
class StaffFilter:
    department: Optional[StaffDepartment] = None
    position: Optional[StaffPosition] = None
    is_active: Optional[bool] = None
