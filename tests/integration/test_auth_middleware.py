# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for authentication, request context and rate limit keys.

Tests the middleware components in isolation from database.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import SecretStr

from src.api.dependencies import RequireRole, require_auth
from src.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from src.api.middleware.rate_limit import get_client_identifier, get_ip_only
from src.api.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware
from src.domains.auth.jwt import JWTManager, TokenPayload


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    settings.refresh_token_expire_days = 7
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def client(jwt_manager: JWTManager) -> TestClient:
    """Small app echoing the authenticated user."""
    app = FastAPI()
    app.add_middleware(AuthMiddleware, jwt_manager=jwt_manager)
    app.add_middleware(RequestContextMiddleware)

    @app.get("/health")
    async def health(request: Request) -> dict:
        return {"user": get_current_user(request) is not None}

    @app.get("/api/v1/whoami")
    async def whoami(request: Request) -> dict:
        user = get_current_user(request)
        if user is None:
            return {"user": None, "key": get_client_identifier(request)}
        return {"user": user.id, "role": user.role, "key": get_client_identifier(request)}

    @app.get("/api/v1/private")
    async def private(user: CurrentUser = Depends(require_auth)) -> dict:
        return {"user": user.id}

    @app.get("/api/v1/office")
    async def office(
        user: CurrentUser = Depends(RequireRole("registrar", "admin")),
    ) -> dict:
        return {"role": user.role}

    return TestClient(app)


def bearer(jwt_manager: JWTManager, role: str = "student", user_id: str | None = None) -> dict:
    token = jwt_manager.create_access_token(user_id or str(uuid4()), role)
    return {"Authorization": f"Bearer {token}"}


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_public_path_skips_token(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that public paths never resolve a user."""
        response = client.get("/health", headers=bearer(jwt_manager))

        assert response.json() == {"user": False}

    def test_valid_token_sets_user(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that a valid access token populates request.state.user."""
        user_id = str(uuid4())

        response = client.get("/api/v1/whoami", headers=bearer(jwt_manager, "teacher", user_id))

        assert response.json() == {"user": user_id, "role": "teacher", "key": f"user:{user_id}"}

    @pytest.mark.parametrize(
        "header",
        ["Bearer not-a-token", "Basic dXNlcjpwYXNz", "Bearer", "token-without-scheme"],
    )
    def test_bad_authorization_header(self, client: TestClient, header: str) -> None:
        """Test that malformed headers leave the request anonymous."""
        response = client.get("/api/v1/whoami", headers={"Authorization": header})

        assert response.json()["user"] is None
        assert response.json()["key"].startswith("ip:")

    def test_refresh_token_is_not_an_access_token(
        self, client: TestClient, jwt_manager: JWTManager
    ) -> None:
        """Test that refresh tokens cannot authenticate requests."""
        token = jwt_manager.create_refresh_token(str(uuid4()))

        response = client.get("/api/v1/private", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_require_auth(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test the authentication dependency."""
        anonymous = client.get("/api/v1/private")
        signed_in = client.get("/api/v1/private", headers=bearer(jwt_manager))

        assert anonymous.status_code == 401
        assert anonymous.headers["WWW-Authenticate"] == "Bearer"
        assert signed_in.status_code == 200

    def test_role_guard(self, client: TestClient, jwt_manager: JWTManager) -> None:
        """Test that role guards answer 403 for other roles."""
        allowed = client.get("/api/v1/office", headers=bearer(jwt_manager, "registrar"))
        denied = client.get("/api/v1/office", headers=bearer(jwt_manager, "teacher"))

        assert allowed.json() == {"role": "registrar"}
        assert denied.status_code == 403


class TestRequestContext:
    """Tests for RequestContextMiddleware."""

    def test_request_id_is_generated(self, client: TestClient) -> None:
        """Test that every response carries a request ID."""
        response = client.get("/health")

        assert len(response.headers[REQUEST_ID_HEADER]) == 32

    def test_client_request_id_is_reused(self, client: TestClient) -> None:
        """Test that a caller supplied request ID is echoed."""
        response = client.get("/health", headers={REQUEST_ID_HEADER: "trace-123"})

        assert response.headers[REQUEST_ID_HEADER] == "trace-123"


class TestCurrentUser:
    """Tests for CurrentUser role helpers."""

    def test_role_helpers(self) -> None:
        """Test the single-role checks."""
        user = CurrentUser(
            TokenPayload(sub="u1", type="access", role="parent", exp=2, iat=1, jti="j")
        )

        assert user.is_parent is True
        assert user.is_admin is False
        assert user.has_role("parent") is True
        assert user.has_any_role("teacher", "parent") is True
        assert user.has_any_role("teacher", "admin") is False

    def test_ip_key(self) -> None:
        """Test the IP-only key used for login limits."""
        request = MagicMock()
        request.client.host = "10.0.0.7"
        request.headers = {}

        assert get_ip_only(request) == "10.0.0.7"
