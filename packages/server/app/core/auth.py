"""
Authentication and authorization.

Callers present ``Authorization: Bearer <jwt>``. The token's ``sub`` resolves
to a row in ``users`` and that row's role (not the token's ``role`` claim)
drives every authorization decision. Tokens are issued by the account
service; ``create_jwt`` exists for local tooling and tests.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import ForbiddenError
from app.models.user import User
from trackhub_shared.schemas.common import Role

log = structlog.get_logger()
settings = get_settings()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    role: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for an authenticated user and their role."""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id
        self.role = Role(user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def get_authenticated_user(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency: Bearer JWT -> user row."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")

    token = authorization[7:].strip()
    try:
        payload = decode_jwt(token)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    auth = AuthenticatedUser(user)
    request.state.auth = auth
    structlog.contextvars.bind_contextvars(user_id=str(auth.user_id), role=auth.role.value)
    return auth


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

def _require_roles(auth: AuthenticatedUser, *roles: Role, label: str) -> AuthenticatedUser:
    if auth.role not in roles:
        log.info("auth.forbidden", user_id=str(auth.user_id), role=auth.role.value)
        raise ForbiddenError(f"{label} access required", role=auth.role.value)
    return auth


async def require_member(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any authenticated user can access this endpoint."""
    return auth


async def require_admin(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires administrator role."""
    return _require_roles(auth, Role.ADMIN, label="Administrator")


async def require_team_lead(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    return _require_roles(auth, Role.TEAM_LEAD, label="Team lead")


async def require_admin_or_team_lead(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    return _require_roles(auth, Role.ADMIN, Role.TEAM_LEAD, label="Administrator or team lead")


async def require_team_lead_or_employee(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    return _require_roles(auth, Role.TEAM_LEAD, Role.EMPLOYEE, label="Team lead or employee")
