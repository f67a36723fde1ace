from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AccountStatus, Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this protocol, never on a concrete database class.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        department: Optional[str],
        mobile: Optional[str],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update_user(self, user_id: int, *, fields: dict) -> bool:
        raise NotImplementedError

    def set_status(self, user_id: int, *, status: AccountStatus) -> bool:
        raise NotImplementedError

    def set_password_hash(self, user_id: int, *, password_hash: str) -> bool:
        raise NotImplementedError

    def touch_last_login(self, user_id: int, *, when: datetime) -> None:
        raise NotImplementedError

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        department: Optional[str] = None,
        status: Optional[AccountStatus] = None,
    ) -> Sequence[User]:
        raise NotImplementedError

    def count_by_role(self) -> dict[str, int]:
        raise NotImplementedError
