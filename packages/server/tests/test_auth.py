"""
Tests for authentication and authorization.

Covers:
- JWT creation, decoding, expiry and tampering
- Role-based authorization (require_admin, require_team_lead, ...)
- Bearer token resolution against the users table
- Security headers middleware
"""

from __future__ import annotations

import uuid
from datetime import timedelta

import jwt as pyjwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.auth import (
    AuthenticatedUser,
    create_jwt,
    decode_jwt,
    require_admin,
    require_admin_or_team_lead,
    require_member,
    require_team_lead,
    require_team_lead_or_employee,
)
from app.core.errors import ForbiddenError
from app.core.middleware import SECURITY_HEADERS, SecurityHeadersMiddleware
from app.models.user import User

from factories import auth_headers


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_create_and_decode(self):
        uid = uuid.uuid4()
        token, jti = create_jwt(user_id=uid, role="team-lead")
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["role"] == "team-lead"
        assert payload["jti"] == jti

    def test_expired_jwt_raises(self):
        token, _ = create_jwt(
            user_id=uuid.uuid4(), role="employee", expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_jwt_raises(self):
        token, _ = create_jwt(user_id=uuid.uuid4(), role="employee")
        tampered = token[:-5] + "XXXXX"
        with pytest.raises(pyjwt.PyJWTError):
            decode_jwt(tampered)


# ---------------------------------------------------------------------------
# Unit Tests: Authorization matrix
# ---------------------------------------------------------------------------

class TestAuthorizationMatrix:
    """Call the role dependencies directly with in-memory users."""

    def _auth(self, role: str) -> AuthenticatedUser:
        return AuthenticatedUser(User(name=role, role=role))

    def test_is_admin(self):
        assert self._auth("administrator").is_admin
        assert not self._auth("team-lead").is_admin
        assert not self._auth("employee").is_admin

    @pytest.mark.parametrize(
        "dependency,allowed",
        [
            (require_member, {"administrator", "team-lead", "employee"}),
            (require_admin, {"administrator"}),
            (require_team_lead, {"team-lead"}),
            (require_admin_or_team_lead, {"administrator", "team-lead"}),
            (require_team_lead_or_employee, {"team-lead", "employee"}),
        ],
    )
    async def test_matrix(self, dependency, allowed):
        for role in ("administrator", "team-lead", "employee"):
            auth = self._auth(role)
            if role in allowed:
                assert await dependency(auth) is auth
            else:
                with pytest.raises(ForbiddenError):
                    await dependency(auth)


# ---------------------------------------------------------------------------
# Integration Tests: Bearer resolution
# ---------------------------------------------------------------------------

class TestBearerResolution:
    async def test_role_comes_from_user_row(self, client, users):
        # Token claims administrator, but the stored role is employee
        token, _ = create_jwt(users.employee.id, "administrator")
        response = await client.get(
            "/api/v1/projects", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 403

    async def test_unknown_user_is_rejected(self, client, users):
        token, _ = create_jwt(uuid.uuid4(), "administrator")
        response = await client.get(
            "/api/v1/projects", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_garbage_token_is_rejected(self, client, users):
        response = await client.get(
            "/api/v1/projects", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_valid_admin_token(self, client, users):
        response = await client.get("/api/v1/projects", headers=auth_headers(users.admin))
        assert response.status_code == 200
        assert response.json()["count"] == 0


# ---------------------------------------------------------------------------
# Integration Tests: Middleware
# ---------------------------------------------------------------------------

class TestSecurityHeadersMiddleware:
    def test_headers_present(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        client = TestClient(app)
        resp = client.get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value
