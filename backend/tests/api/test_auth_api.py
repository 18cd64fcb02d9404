"""Tests for admin authentication endpoints.

- POST /api/v1/auth/login
- POST /api/v1/auth/logout
- GET /api/v1/auth/me
- GET /api/v1/auth/session
"""

import pytest
from httpx import AsyncClient

from portfolio.core.rate_limit import login_limiter
from portfolio.models.admin import Admin

CREDENTIALS = {"email": "owner@example.com", "password": "correct-horse-battery"}


class TestLogin:
    """Tests for POST /auth/login."""

    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, async_client: AsyncClient, admin: Admin) -> None:
        response = await async_client.post("/api/v1/auth/login", json=CREDENTIALS)

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["user"]["email"] == "owner@example.com"
        assert body["user"]["role"] == "admin"
        assert response.cookies.get("portfolio_session") == body["token"]
        assert "httponly" in response.headers["set-cookie"].lower()

    @pytest.mark.asyncio
    async def test_email_is_case_insensitive(
        self, async_client: AsyncClient, admin: Admin
    ) -> None:
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": "  OWNER@example.com ", "password": CREDENTIALS["password"]},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_password(self, async_client: AsyncClient, admin: Admin) -> None:
        response = await async_client.post(
            "/api/v1/auth/login", json={"email": CREDENTIALS["email"], "password": "nope-nope"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"
        assert "portfolio_session" not in response.cookies

    @pytest.mark.asyncio
    async def test_missing_fields(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/v1/auth/login", json={})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_rate_limited(
        self, async_client: AsyncClient, admin: Admin, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(login_limiter, "capacity", 1)
        bad = {"email": CREDENTIALS["email"], "password": "wrong-password"}

        await async_client.post("/api/v1/auth/login", json=bad)
        response = await async_client.post("/api/v1/auth/login", json=CREDENTIALS)

        assert response.status_code == 429
        assert "Retry-After" in response.headers


class TestSession:
    """Tests for /auth/me, /auth/session and /auth/logout."""

    @pytest.mark.asyncio
    async def test_me_with_bearer(self, admin_client: AsyncClient) -> None:
        response = await admin_client.get("/api/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["display_name"] == "Owner"

    @pytest.mark.asyncio
    async def test_me_without_session(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_session_check(
        self, async_client: AsyncClient, admin_client: AsyncClient
    ) -> None:
        anonymous = (await async_client.get("/api/v1/auth/session")).json()
        signed_in = (await admin_client.get("/api/v1/auth/session")).json()

        assert anonymous == {"ok": False, "authenticated": False, "user": None}
        assert signed_in["ok"] is True
        assert signed_in["authenticated"] is True
        assert signed_in["user"]["email"] == "owner@example.com"

    @pytest.mark.asyncio
    async def test_cookie_round_trip_and_logout(
        self, async_client: AsyncClient, admin: Admin
    ) -> None:
        await async_client.post("/api/v1/auth/login", json=CREDENTIALS)

        assert (await async_client.get("/api/v1/auth/me")).status_code == 200

        logout = await async_client.post("/api/v1/auth/logout")
        assert logout.json() == {"ok": True}

        async_client.cookies.clear()
        assert (await async_client.get("/api/v1/auth/me")).status_code == 401

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, admin_client: AsyncClient) -> None:
        await admin_client.post("/api/v1/auth/logout")

        response = await admin_client.get("/api/v1/auth/me")

        assert response.status_code == 401
