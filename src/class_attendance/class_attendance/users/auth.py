from __future__ import annotations

from functools import wraps

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import User
from .service import AuthService

FACULTY_AND_ABOVE = (Role.ADMIN, Role.PRINCIPAL, Role.HOD, Role.FACULTY)
HOD_AND_ABOVE = (Role.ADMIN, Role.PRINCIPAL, Role.HOD)
PRINCIPAL_AND_ABOVE = (Role.ADMIN, Role.PRINCIPAL)


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Access denied. No token provided.")
    return token.strip()


def current_user() -> User:
    user = getattr(g, "current_user", None)
    if user is None:
        raise AuthenticationError("Authentication required.")
    return user


class AuthGuard:
    """Route decorators: ``authenticate`` first, then a role gate.

    Usage::

        @app.get("/api/x")
        @guard.hod_and_above
        def view(): ...
    """

    def __init__(self, auth_service: AuthService):
        self._auth = auth_service

    def authenticate(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = self._auth.current_user(bearer_token())
            self._auth.touch(user)
            g.current_user = user
            return view(*args, **kwargs)

        return wrapper

    def authorize(self, *roles: Role):
        allowed = frozenset(roles)

        def decorator(view):
            @wraps(view)
            def gated(*args, **kwargs):
                user = current_user()
                if user.role not in allowed:
                    raise AuthorizationError(
                        f"Role {user.role.value} not in {sorted(r.value for r in allowed)}"
                    )
                return view(*args, **kwargs)

            return self.authenticate(gated)

        return decorator

    def faculty_and_above(self, view):
        return self.authorize(*FACULTY_AND_ABOVE)(view)

    def hod_and_above(self, view):
        return self.authorize(*HOD_AND_ABOVE)(view)

    def principal_and_above(self, view):
        return self.authorize(*PRINCIPAL_AND_ABOVE)(view)

    def admin_only(self, view):
        return self.authorize(Role.ADMIN)(view)
