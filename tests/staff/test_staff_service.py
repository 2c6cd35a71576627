import pytest

from src.healthcare_staffing.healthcare_staffing.core.enums import Role, StaffDepartment
from src.healthcare_staffing.healthcare_staffing.core.exceptions import (
    AuthorizationError,
    DuplicateRecordError,
    NotFoundError,
    ValidationError,
)


def _payload(**overrides):
    data = {
        "employee_id": "EMP001",
        "first_name": "Grace",
        "last_name": "Hopper",
        "email": "Grace.Hopper@hospital.test",
        "phone": "+15550001111",
        "department": "Nursing",
        "position": "Nurse",
        "date_of_joining": "2024-03-01",
        "salary": "52000",
        "address": {"city": "Boston", "country": "USA"},
    }
    data.update(overrides)
    return data


@pytest.fixture
def service(container):
    return container.staff_service


def test_create_record_normalizes_input(service):
    record = service.create_record(current_role=Role.ADMIN, data=_payload())

    assert record.staff_id == 1
    assert record.email == "grace.hopper@hospital.test"
    assert record.salary == 52000.0
    assert record.address.city == "Boston"
    assert record.to_dict()["full_name"] == "Grace Hopper"


def test_duplicate_employee_id_is_rejected(service):
    service.create_record(current_role=Role.ADMIN, data=_payload())

    with pytest.raises(DuplicateRecordError):
        service.create_record(current_role=Role.ADMIN, data=_payload(email="other@hospital.test"))


def test_invalid_fields_are_rejected(service):
    with pytest.raises(ValidationError):
        service.create_record(current_role=Role.ADMIN, data=_payload(department="Kitchen"))
    with pytest.raises(ValidationError):
        service.create_record(current_role=Role.ADMIN, data=_payload(email="not-an-email"))
    with pytest.raises(ValidationError):
        service.create_record(current_role=Role.ADMIN, data=_payload(salary=-1))


def test_only_admin_manages_records(service):
    with pytest.raises(AuthorizationError):
        service.create_record(current_role=Role.NURSE, data=_payload())


def test_update_and_list_by_department(service):
    record = service.create_record(current_role=Role.ADMIN, data=_payload())

    updated = service.update_record(
        current_role=Role.ADMIN, staff_id=record.staff_id, changes={"department": "Emergency"}
    )

    assert updated.department == StaffDepartment.EMERGENCY
    assert [r.staff_id for r in service.list_by_department("Emergency")] == [record.staff_id]
    assert service.list_by_department("Nursing") == []


def test_delete_missing_record_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.delete_record(current_role=Role.ADMIN, staff_id=42)
