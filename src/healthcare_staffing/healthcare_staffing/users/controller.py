from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.auth import admin_required, current_role, current_user_id, login_required
from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    session_days = int(app.config.get("SESSION_DAYS", 7))

    @app.post("/api/auth/login", endpoint="login")
    def login():
        body = json_body()
        s_user = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))

        session.clear()
        session.permanent = bool(body.get("remember_me", True))
        app.permanent_session_lifetime = timedelta(days=session_days)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        return ok(container.user_service.get_user(s_user.user_id).to_public_dict())

    @app.post("/api/auth/logout", endpoint="logout")
    def logout():
        session.clear()
        return ok({"message": "Logged out"})

    @app.get("/api/auth/me", endpoint="me")
    @login_required
    def me():
        return ok(container.user_service.get_user(current_user_id()).to_public_dict())

    @app.put("/api/auth/updatepassword", endpoint="update_password")
    @login_required
    def update_password():
        body = json_body()
        container.user_service.change_password(
            user_id=current_user_id(),
            current_password=body.get("current_password", ""),
            new_password=body.get("new_password", ""),
        )
        return ok({"message": "Password updated successfully"})

    @app.get("/api/users", endpoint="list_users")
    @admin_required
    def list_users():
        users = container.user_service.list_users(role=request.args.get("role"))
        return ok([u.to_public_dict() for u in users], count=len(users))

    @app.post("/api/users", endpoint="create_user")
    @admin_required
    def create_user():
        body = json_body()
        user = container.user_service.create_account(
            current_role=current_role(),
            name=body.get("name", ""),
            email=body.get("email", ""),
            phone=body.get("phone", ""),
            password=body.get("password", ""),
            role=body.get("role"),
            department=body.get("department"),
        )
        return ok(user.to_public_dict(), status=201)

    @app.get("/api/users/<int:user_id>", endpoint="get_user")
    @login_required
    def get_user(user_id: int):
        user = container.user_service.view_user(
            current_role=current_role(),
            current_user_id=current_user_id(),
            user_id=user_id,
        )
        return ok(user.to_public_dict())

    @app.put("/api/users/<int:user_id>/active", endpoint="set_user_active")
    @admin_required
    def set_user_active(user_id: int):
        body = json_body()
        user = container.user_service.set_active(
            current_role=current_role(),
            current_user_id=current_user_id(),
            user_id=user_id,
            is_active=bool(body.get("is_active", True)),
        )
        return ok(user.to_public_dict())
