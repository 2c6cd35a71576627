from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    NURSE = "nurse"
    RECEPTIONIST = "receptionist"
    PHARMACIST = "pharmacist"
    TECHNICIAN = "technician"


class ShiftType(str, Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    NIGHT = "Night"


class ShiftStatus(str, Enum):
    OPEN = "Open"
    FULL = "Full"
    CLOSED = "Closed"


class ShiftDepartment(str, Enum):
    """Wards a shift can be scheduled in."""

    GENERAL = "General"
    EMERGENCY = "Emergency"
    ICU = "ICU"
    SURGERY = "Surgery"
    PEDIATRICS = "Pediatrics"
    MATERNITY = "Maternity"


class StaffDepartment(str, Enum):
    """HR departments used by staff records."""

    EMERGENCY = "Emergency"
    CARDIOLOGY = "Cardiology"
    NEUROLOGY = "Neurology"
    PEDIATRICS = "Pediatrics"
    SURGERY = "Surgery"
    RADIOLOGY = "Radiology"
    LABORATORY = "Laboratory"
    PHARMACY = "Pharmacy"
    ADMINISTRATION = "Administration"
    NURSING = "Nursing"


class StaffPosition(str, Enum):
    DOCTOR = "Doctor"
    NURSE = "Nurse"
    TECHNICIAN = "Technician"
    ADMINISTRATOR = "Administrator"
    PHARMACIST = "Pharmacist"
    RADIOLOGIST = "Radiologist"
    LAB_TECHNICIAN = "Lab Technician"
    SURGEON = "Surgeon"
    SPECIALIST = "Specialist"


class AttendanceStatus(str, Enum):
    """Attendance status as marked by an administrator."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    SICK_LEAVE = "Sick Leave"
    EMERGENCY_LEAVE = "Emergency Leave"
    HALF_DAY = "Half Day"


class LeaveType(str, Enum):
    SICK = "Sick Leave"
    VACATION = "Vacation Leave"
    EMERGENCY = "Emergency Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"
    PERSONAL = "Personal Leave"
    COMPENSATORY = "Compensatory Leave"
    BEREAVEMENT = "Bereavement Leave"


class LeaveStatus(str, Enum):
    """Leave lifecycle: Pending -> Approved/Rejected, Pending/Approved -> Cancelled."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"
