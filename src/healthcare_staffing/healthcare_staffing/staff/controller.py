from __future__ import annotations

from flask import Flask, request

from ..common.auth import admin_required, current_role, login_required
from ..common.http import json_body, ok
from ..common.paging import page_request
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.get("/api/staff", endpoint="list_staff")
    @login_required
    def list_staff():
        page = container.staff_service.list_records(
            department=request.args.get("department"),
            position=request.args.get("position"),
            is_active=request.args.get("is_active"),
            page=page_request(container.default_page_size),
        )
        return ok([r.to_dict() for r in page.items], pagination=page.meta())

    @app.get("/api/staff/department/<department>", endpoint="list_staff_by_department")
    @login_required
    def list_staff_by_department(department: str):
        records = container.staff_service.list_by_department(department)
        return ok([r.to_dict() for r in records], count=len(records))

    @app.get("/api/staff/<int:staff_id>", endpoint="get_staff")
    @login_required
    def get_staff(staff_id: int):
        return ok(container.staff_service.get_record(staff_id).to_dict())

    @app.post("/api/staff", endpoint="create_staff")
    @admin_required
    def create_staff():
        record = container.staff_service.create_record(current_role=current_role(), data=json_body())
        return ok(record.to_dict(), status=201)

    @app.put("/api/staff/<int:staff_id>", endpoint="update_staff")
    @admin_required
    def update_staff(staff_id: int):
        record = container.staff_service.update_record(
            current_role=current_role(),
            staff_id=staff_id,
            changes=json_body(),
        )
        return ok(record.to_dict())

    @app.delete("/api/staff/<int:staff_id>", endpoint="delete_staff")
    @admin_required
    def delete_staff(staff_id: int):
        container.staff_service.delete_record(current_role=current_role(), staff_id=staff_id)
        return ok({"message": "Staff member deleted"})
