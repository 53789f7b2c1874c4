"""Access-token verification for API routes.

Tokens are issued by the account service; this module only verifies them and
resolves the caller to a ``Principal``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bookstore.core.config import settings
from bookstore.core.database import get_db
from bookstore.core.errors import ForbiddenError, UnauthorizedError
from bookstore.models.user import UserRole
from bookstore.repositories.user_repository import UserRepository


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def create_access_token(user_id: int, role: UserRole = UserRole.USER) -> str:
    """Sign an access token in the format ``get_current_principal`` accepts."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(seconds=settings.JWT_ACCESS_EXPIRES_SECONDS),
    }
    return jwt.encode(payload, settings.JWT_ACCESS_SECRET, algorithm=settings.JWT_ALGORITHM)


def _extract_token(request: Request) -> str | None:
    cookie_token = request.cookies.get(settings.ACCESS_COOKIE_NAME)
    if cookie_token:
        return cookie_token

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def get_current_principal(
    request: Request,
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the caller from the access-token cookie or bearer header."""
    token = _extract_token(request)
    if not token:
        raise UnauthorizedError("Access token missing")

    try:
        payload = jwt.decode(
            token, settings.JWT_ACCESS_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
        user_id = int(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired") from None
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise UnauthorizedError("Invalid access token") from None

    user = UserRepository(db).get_active_by_id(user_id)
    if not user:
        raise UnauthorizedError("User not found or inactive")

    return Principal(user_id=user.id, role=UserRole(user.role))  # type: ignore[arg-type]


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise ForbiddenError("Admin role required")
    return principal
