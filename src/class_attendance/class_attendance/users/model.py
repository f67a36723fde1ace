from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.academic import normalize_department
from ..common.validators import clean_str
from ..core.enums import AccountStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError


@dataclass(frozen=True)
class User:
    """Login identity shared by every role.

    Note: plain data object; no database access here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    mobile: Optional[str] = None
    status: AccountStatus = AccountStatus.ACTIVE
    last_login: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE

    def scoped_department(self, requested: Any = None) -> str:
        """Admins and principals must name a department; everyone else is pinned to their own."""

        requested_v = normalize_department(requested) if clean_str(requested) else None
        if self.role in (Role.ADMIN, Role.PRINCIPAL):
            if not requested_v:
                raise ValidationError("Department is required")
            return requested_v
        if not self.department:
            raise ValidationError("Your account has no department")
        if requested_v and requested_v != self.department:
            raise AuthorizationError(f"User {self.user_id} cannot access department {requested_v}")
        return self.department

    def to_public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "department": self.department,
            "mobile": self.mobile,
            "status": self.status.value,
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
        }


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"

    def to_dict(self) -> dict:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token, "tokenType": self.token_type}
