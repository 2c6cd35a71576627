from __future__ import annotations

from flask import Flask, request

from ..common.auth import admin_required, current_role, current_user_id, login_required
from ..common.http import json_body, ok
from ..common.paging import page_request
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.post("/api/attendance", endpoint="mark_attendance")
    @admin_required
    def mark_attendance():
        body = json_body()
        record = container.attendance_service.mark(
            current_role=current_role(),
            current_user_id=current_user_id(),
            staff_id=body.get("staff_id"),
            shift_id=body.get("shift_id"),
            work_date=body.get("date"),
            status=body.get("status"),
            check_in_time=body.get("check_in_time"),
            check_out_time=body.get("check_out_time"),
            leave_id=body.get("leave_id"),
            remarks=body.get("remarks"),
        )
        return ok(record.to_dict(), status=201)

    @app.put("/api/attendance/<int:attendance_id>", endpoint="update_attendance")
    @admin_required
    def update_attendance(attendance_id: int):
        record = container.attendance_service.update(
            current_role=current_role(),
            current_user_id=current_user_id(),
            attendance_id=attendance_id,
            changes=json_body(),
        )
        return ok(record.to_dict())

    @app.get("/api/attendance", endpoint="list_attendance")
    @login_required
    def list_attendance():
        args = request.args
        page = container.attendance_service.list_records(
            current_role=current_role(),
            current_user_id=current_user_id(),
            staff_id=args.get("staff_id"),
            shift_id=args.get("shift_id"),
            work_date=args.get("date"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            status=args.get("status"),
            department=args.get("department"),
            page=page_request(container.default_page_size),
        )
        return ok([r.to_dict() for r in page.items], pagination=page.meta())

    @app.get("/api/attendance/stats/<int:staff_id>", endpoint="attendance_stats")
    @login_required
    def attendance_stats(staff_id: int):
        stats = container.attendance_service.stats(
            current_role=current_role(),
            current_user_id=current_user_id(),
            staff_id=staff_id,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            year=request.args.get("year"),
        )
        return ok(stats)

    @app.get("/api/attendance/daily/<work_date>", endpoint="attendance_daily_summary")
    @admin_required
    def attendance_daily_summary(work_date: str):
        return ok(container.attendance_service.daily_summary(current_role=current_role(), work_date=work_date))
