from __future__ import annotations

from flask import Flask, request

from ..common.auth import admin_required, current_role, current_user_id
from ..common.http import json_body, ok
from ..common.paging import page_request
from ..container import Container
from .resolver import conflict_summary


def register(app: Flask, container: Container) -> None:
    @app.get("/api/shifts", endpoint="list_shifts")
    @admin_required
    def list_shifts():
        page = container.shift_service.list_shifts(
            shift_type=request.args.get("shift_type"),
            department=request.args.get("department"),
            status=request.args.get("status"),
            shift_date=request.args.get("date"),
            page=page_request(container.default_page_size),
        )
        return ok([s.to_dict() for s in page.items], pagination=page.meta())

    @app.post("/api/shifts", endpoint="create_shift")
    @admin_required
    def create_shift():
        body = json_body()
        shift = container.shift_service.create_shift(
            current_role=current_role(),
            current_user_id=current_user_id(),
            shift_type=body.get("shift_type"),
            start_time=body.get("start_time"),
            end_time=body.get("end_time"),
            department=body.get("department"),
            required_staff=body.get("required_staff", 5),
            shift_date=body.get("shift_date"),
            description=body.get("description"),
        )
        return ok(shift.to_dict(), status=201)

    @app.get("/api/shifts/conflicts", endpoint="shift_conflicts")
    @admin_required
    def shift_conflicts():
        conflicts = container.shift_service.check_conflicts(
            staff_id=request.args.get("staff_id"),
            start_time=request.args.get("start_time"),
            end_time=request.args.get("end_time"),
            on_date=request.args.get("date"),
        )
        return ok(
            {"has_conflicts": bool(conflicts), "conflicts": [conflict_summary(s) for s in conflicts]},
        )

    @app.get("/api/shifts/staff/<int:staff_id>", endpoint="staff_shifts")
    @admin_required
    def staff_shifts(staff_id: int):
        shifts = container.shift_service.list_staff_shifts(staff_id)
        return ok([s.to_dict() for s in shifts], count=len(shifts))

    @app.get("/api/shifts/<int:shift_id>", endpoint="get_shift")
    @admin_required
    def get_shift(shift_id: int):
        return ok(container.shift_service.get_shift(shift_id).to_dict())

    @app.put("/api/shifts/<int:shift_id>", endpoint="update_shift")
    @admin_required
    def update_shift(shift_id: int):
        shift = container.shift_service.update_shift(
            current_role=current_role(),
            current_user_id=current_user_id(),
            shift_id=shift_id,
            changes=json_body(),
        )
        return ok(shift.to_dict())

    @app.delete("/api/shifts/<int:shift_id>", endpoint="delete_shift")
    @admin_required
    def delete_shift(shift_id: int):
        container.shift_service.delete_shift(current_role=current_role(), shift_id=shift_id)
        return ok({"message": "Shift deleted"})

    @app.post("/api/shifts/<int:shift_id>/assign", endpoint="assign_staff")
    @admin_required
    def assign_staff(shift_id: int):
        shift = container.shift_service.assign_staff(
            current_role=current_role(),
            current_user_id=current_user_id(),
            shift_id=shift_id,
            staff_ids=json_body().get("staff_ids"),
        )
        return ok(shift.to_dict())

    @app.put("/api/shifts/<int:shift_id>/remove-staff", endpoint="remove_staff")
    @admin_required
    def remove_staff(shift_id: int):
        shift = container.shift_service.remove_staff(
            current_role=current_role(),
            current_user_id=current_user_id(),
            shift_id=shift_id,
            staff_ids=json_body().get("staff_ids"),
        )
        return ok(shift.to_dict())
