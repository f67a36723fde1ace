from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..container import Container
from .auth import current_user


def register(app: Flask, container: Container) -> None:
    guard = container.guard
    auth = container.auth_service
    users = container.user_service

    @app.post("/api/auth/login", endpoint="auth_login")
    def login():
        data = json_body()
        user, tokens = auth.login(data.get("email", ""), data.get("password", ""), role=data.get("role"))
        return ok({"user": user.to_public_dict(), **tokens.to_dict()}, message="Login successful")

    @app.post("/api/auth/refresh", endpoint="auth_refresh")
    def refresh():
        tokens = auth.refresh(json_body().get("refreshToken", ""))
        return ok(tokens.to_dict())

    @app.get("/api/auth/me", endpoint="auth_me")
    @guard.authenticate
    def me():
        return ok({"user": current_user().to_public_dict()})

    @app.post("/api/auth/logout", endpoint="auth_logout")
    @guard.authenticate
    def logout():
        # Tokens are stateless; the client drops them.
        return ok(message="Logged out successfully")

    @app.get("/api/admin/users", endpoint="admin_list_users")
    @guard.admin_only
    def list_users():
        items = users.list_users(
            role=request.args.get("role"),
            department=request.args.get("department"),
            status=request.args.get("status"),
        )
        return ok({"users": [u.to_public_dict() for u in items], "count": len(items)})

    @app.post("/api/admin/users", endpoint="admin_create_user")
    @guard.admin_only
    def create_user():
        data = json_body()
        user = users.create_user(
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password"),
            role=data.get("role", ""),
            department=data.get("department"),
            mobile=data.get("mobile"),
            created_by=current_user().user_id,
        )
        return ok({"user": user.to_public_dict()}, message="User created successfully", status=201)

    @app.get("/api/admin/users/<int:user_id>", endpoint="admin_get_user")
    @guard.admin_only
    def get_user(user_id: int):
        return ok({"user": users.get_user(user_id).to_public_dict()})

    @app.put("/api/admin/users/<int:user_id>", endpoint="admin_update_user")
    @guard.admin_only
    def update_user(user_id: int):
        user = users.update_user(user_id, data=json_body())
        return ok({"user": user.to_public_dict()}, message="User updated successfully")

    @app.delete("/api/admin/users/<int:user_id>", endpoint="admin_delete_user")
    @guard.admin_only
    def delete_user(user_id: int):
        users.deactivate_user(user_id, current_user=current_user())
        return ok(message="User deactivated successfully")

    @app.post("/api/admin/users/<int:user_id>/reset-password", endpoint="admin_reset_password")
    @guard.admin_only
    def reset_password(user_id: int):
        users.reset_password(user_id, new_password=json_body().get("newPassword"))
        return ok(message="Password reset successfully")

    @app.get("/api/admin/dashboard", endpoint="admin_dashboard")
    @guard.admin_only
    def dashboard():
        return ok(users.dashboard_counts())
