from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.academic import normalize_department
from ..common.validators import is_valid_email, is_valid_mobile, require_min_length, require_non_empty
from ..core.constants import DEFAULT_ACCESS_TOKEN_MINUTES, DEFAULT_REFRESH_TOKEN_DAYS, MIN_PASSWORD_LENGTH
from ..core.enums import AccountStatus, Role
from ..core.exceptions import AuthenticationError, DuplicateResourceError, NotFoundError, ValidationError
from .model import TokenPair, User
from .repository import UserRepository

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"

INVALID_CREDENTIALS = "Invalid email or password"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Signs and verifies HS256 access/refresh tokens."""

    def __init__(
        self,
        secret: str,
        *,
        access_minutes: int = DEFAULT_ACCESS_TOKEN_MINUTES,
        refresh_days: int = DEFAULT_REFRESH_TOKEN_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._access_ttl = timedelta(minutes=int(access_minutes))
        self._refresh_ttl = timedelta(days=int(refresh_days))
        self._clock = clock

    def _encode(self, user: User, *, token_type: str, ttl: timedelta) -> str:
        now = self._clock()
        claims = {
            "sub": str(user.user_id),
            "role": user.role.value,
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def issue(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=self._encode(user, token_type=ACCESS, ttl=self._access_ttl),
            refresh_token=self._encode(user, token_type=REFRESH, ttl=self._refresh_ttl),
        )

    def decode(self, token: str, *, expected_type: str = ACCESS) -> int:
        """Return the user id carried by ``token``."""

        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except JWTError:
            raise AuthenticationError("Invalid token")

        if payload.get("type") != expected_type:
            raise AuthenticationError("Invalid token")
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token")


class AuthService:
    """Use case: login, token refresh and token-to-user lookup."""

    def __init__(self, users: UserRepository, tokens: TokenService, *, clock: Callable[[], datetime] = datetime.now):
        self._users = users
        self._tokens = tokens
        self._clock = clock

    def login(self, email: str, password: str, *, role: Optional[str] = None) -> tuple[User, TokenPair]:
        email = (email or "").strip().lower()
        user = self._users.get_by_email(email) if email else None
        if not user or not user.is_active:
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # unknown hash method, e.g. placeholder values
            ok = False
        if not ok:
            raise AuthenticationError(INVALID_CREDENTIALS)

        if role and role.strip().lower() != user.role.value:
            raise AuthenticationError(INVALID_CREDENTIALS)

        self._users.touch_last_login(user.user_id, when=self._clock())
        logger.info("User %s logged in as %s", user.user_id, user.role.value)
        return user, self._tokens.issue(user)

    def refresh(self, refresh_token: str) -> TokenPair:
        if not refresh_token:
            raise AuthenticationError("Refresh token required")
        user_id = self._tokens.decode(refresh_token, expected_type=REFRESH)
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid refresh token")
        return self._tokens.issue(user)

    def current_user(self, access_token: str) -> User:
        user_id = self._tokens.decode(access_token, expected_type=ACCESS)
        user = self._users.get_by_id(user_id)
        if not user:
            raise AuthenticationError("Token is not valid. User not found.")
        if not user.is_active:
            raise AuthenticationError("Account is inactive or suspended.")
        return user

    def touch(self, user: User) -> None:
        self._users.touch_last_login(user.user_id, when=self._clock())


class UserService:
    """Use case: manage accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        department: Optional[str] = None,
        mobile: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> User:
        errors: list[str] = []
        if not (name or "").strip():
            errors.append("Name is required")
        if not is_valid_email(email):
            errors.append("Valid email is required")
        if password is None or len(password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if mobile and not is_valid_mobile(mobile):
            errors.append("Mobile number must be 10 digits")
        try:
            role_v = Role((role or "").strip().lower())
        except ValueError:
            errors.append("Invalid role")
            role_v = None

        department_v = None
        if department:
            try:
                department_v = normalize_department(department)
            except ValidationError as e:
                errors.append(e.message)
        elif role_v in (Role.HOD, Role.FACULTY, Role.STUDENT):
            errors.append("Department is required for this role")

        if errors:
            raise ValidationError("Validation failed", details=errors)

        email = email.strip().lower()
        if self._users.get_by_email(email):
            raise DuplicateResourceError("A user with this email already exists", code="DUPLICATE_EMAIL")

        user_id = self._users.create_user(
            name=name.strip(),
            email=email,
            password_hash=generate_password_hash(password),
            role=role_v,
            department=department_v,
            mobile=(mobile or None),
            created_by=created_by,
        )
        logger.info("User %s created with role %s by %s", user_id, role_v.value, created_by)
        return self._require_user(user_id)

    def get_user(self, user_id: int) -> User:
        return self._require_user(user_id)

    def update_user(self, user_id: int, *, data: dict) -> User:
        self._require_user(user_id)
        fields: dict = {}
        if "name" in data:
            fields["name"] = require_non_empty(data.get("name"), "Name")
        if "email" in data:
            email = (data.get("email") or "").strip().lower()
            if not is_valid_email(email):
                raise ValidationError("Valid email is required")
            other = self._users.get_by_email(email)
            if other and other.user_id != user_id:
                raise DuplicateResourceError("A user with this email already exists", code="DUPLICATE_EMAIL")
            fields["email"] = email
        if "role" in data:
            try:
                fields["role"] = Role((data.get("role") or "").strip().lower())
            except ValueError:
                raise ValidationError("Invalid role")
        if "department" in data:
            fields["department"] = normalize_department(data["department"]) if data.get("department") else None
        if "mobile" in data:
            mobile = data.get("mobile") or None
            if mobile and not is_valid_mobile(mobile):
                raise ValidationError("Mobile number must be 10 digits")
            fields["mobile"] = mobile

        if fields:
            self._users.update_user(user_id, fields=fields)
        return self._require_user(user_id)

    def deactivate_user(self, user_id: int, *, current_user: User) -> None:
        if user_id == current_user.user_id:
            raise ValidationError("You cannot deactivate your own account")
        self._require_user(user_id)
        self._users.set_status(user_id, status=AccountStatus.INACTIVE)
        logger.info("User %s deactivated by %s", user_id, current_user.user_id)

    def reset_password(self, user_id: int, *, new_password: str) -> None:
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        self._require_user(user_id)
        self._users.set_password_hash(user_id, password_hash=generate_password_hash(new_password))

    def list_users(
        self,
        *,
        role: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[User]:
        try:
            role_v = Role(role) if role else None
            status_v = AccountStatus(status) if status else None
        except ValueError:
            raise ValidationError("Invalid role or status filter")
        return list(self._users.list_users(role=role_v, department=department or None, status=status_v))

    def dashboard_counts(self) -> dict:
        counts = self._users.count_by_role()
        return {
            "totalUsers": sum(counts.values()),
            "byRole": {r.value: counts.get(r.value, 0) for r in Role},
        }
