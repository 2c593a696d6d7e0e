"""Integration tests for auth endpoints."""

import pytest
from httpx import AsyncClient

from clubhub.config import settings
from tests.factories import auth_headers_for, create_person


pytestmark = pytest.mark.integration

LOGIN = "/api/v1/auth/login"


class TestLogin:
    """Tests for login endpoint."""

    async def test_login_success(self, client: AsyncClient, db):
        """POST /api/v1/auth/login should return an access token."""
        await create_person(db, "login@example.com")

        response = await client.post(
            LOGIN, json={"email": "Login@Example.com", "password": "SecurePass123!"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.access_token_expire_minutes * 60
        assert "refresh_token" not in data

    async def test_login_wrong_password(self, client: AsyncClient, db):
        await create_person(db, "login@example.com")

        response = await client.post(
            LOGIN, json={"email": "login@example.com", "password": "WrongPass123!"}
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/invalid_credentials")

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            LOGIN, json={"email": "nobody@example.com", "password": "SecurePass123!"}
        )

        assert response.status_code == 401

    async def test_repeated_failures_lock_account(self, client: AsyncClient, db):
        """Reaching the failure limit locks out even the right password."""
        await create_person(db, "locked@example.com")

        for _ in range(settings.max_failed_login_attempts):
            await client.post(
                LOGIN, json={"email": "locked@example.com", "password": "WrongPass123!"}
            )

        response = await client.post(
            LOGIN, json={"email": "locked@example.com", "password": "SecurePass123!"}
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/account_locked")


class TestMe:
    """Tests for the current-credential endpoint."""

    async def test_me_with_token(self, client: AsyncClient, db):
        person = await create_person(db, "me@example.com")

        response = await client.get("/api/v1/auth/me", headers=auth_headers_for(person))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "me@example.com"
        assert data["platform_role"] == "PlatformUser"

    async def test_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["type"].endswith("/missing_token")

    async def test_me_with_garbage_token(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/invalid_token")
