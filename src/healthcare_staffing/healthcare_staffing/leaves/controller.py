from __future__ import annotations

from flask import Flask, request

from ..common.auth import admin_required, current_role, current_user_id, login_required
from ..common.http import json_body, ok
from ..common.paging import page_request
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.post("/api/leaves/apply", endpoint="apply_leave")
    @login_required
    def apply_leave():
        body = json_body()
        leave = service.apply(
            current_role=current_role(),
            current_user_id=current_user_id(),
            staff_id=body.get("staff_id"),
            leave_type=body.get("leave_type"),
            start_date=body.get("start_date"),
            end_date=body.get("end_date"),
            reason=body.get("reason", ""),
            is_emergency=bool(body.get("is_emergency", False)),
            handover_notes=body.get("handover_notes"),
            emergency_contact=body.get("emergency_contact"),
        )
        return ok(leave.to_dict(service.today()), status=201)

    @app.get("/api/leaves", endpoint="list_leaves")
    @login_required
    def list_leaves():
        args = request.args
        page = service.list_leaves(
            current_role=current_role(),
            current_user_id=current_user_id(),
            staff_id=args.get("staff_id"),
            status=args.get("status"),
            leave_type=args.get("leave_type"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            page=page_request(container.default_page_size),
        )
        today = service.today()
        return ok([leave.to_dict(today) for leave in page.items], pagination=page.meta())

    @app.get("/api/leaves/admin/pending", endpoint="pending_leaves")
    @admin_required
    def pending_leaves():
        queue = service.pending_queue(current_role=current_role())
        today = service.today()
        return ok(
            {
                "urgent": [leave.to_dict(today) for leave in queue["urgent"]],
                "regular": [leave.to_dict(today) for leave in queue["regular"]],
                "total": queue["total"],
            }
        )

    @app.get("/api/leaves/calendar/team", endpoint="team_leave_calendar")
    @login_required
    def team_leave_calendar():
        entries = service.team_calendar(
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            department=request.args.get("department"),
        )
        return ok(entries, count=len(entries))

    @app.get("/api/leaves/stats/<int:staff_id>", endpoint="leave_stats")
    @login_required
    def leave_stats(staff_id: int):
        return ok(
            service.balance(
                current_role=current_role(),
                current_user_id=current_user_id(),
                staff_id=staff_id,
                year=request.args.get("year"),
            )
        )

    @app.get("/api/leaves/<int:leave_id>", endpoint="get_leave")
    @login_required
    def get_leave(leave_id: int):
        leave = service.get_leave(current_role=current_role(), current_user_id=current_user_id(), leave_id=leave_id)
        return ok(leave.to_dict(service.today()))

    @app.put("/api/leaves/review/<int:leave_id>", endpoint="review_leave")
    @admin_required
    def review_leave(leave_id: int):
        body = json_body()
        leave = service.review(
            current_role=current_role(),
            current_user_id=current_user_id(),
            leave_id=leave_id,
            status=body.get("status"),
            review_comments=body.get("review_comments"),
            replacements=body.get("replacements"),
        )
        return ok(leave.to_dict(service.today()))

    @app.put("/api/leaves/cancel/<int:leave_id>", endpoint="cancel_leave")
    @login_required
    def cancel_leave(leave_id: int):
        leave = service.cancel(current_role=current_role(), current_user_id=current_user_id(), leave_id=leave_id)
        return ok(leave.to_dict(service.today()))
