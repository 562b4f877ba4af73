"""
Brainswarm Backend — Auth API Tests
====================================

What:  End-to-end tests for register/login/logout, /api/user and /health.
How:   HTTPX AsyncClient against the app with a fresh SQLite schema.
"""

import pytest

from conftest import DEFAULT_PASSWORD


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_token_and_user(self, test_client):
        response = await test_client.post(
            "/api/register",
            json={
                "name": "Ada Lovelace",
                "email": "Ada@Example.com",
                "password": DEFAULT_PASSWORD,
                "password_confirmation": DEFAULT_PASSWORD,
                "nickname": "ada",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "Bearer"
        assert body["access_token"]
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["nickname"] == "ada"
        assert "password_hash" not in body["user"]

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, test_client, api):
        await api.register(email="dup@example.com")

        response = await test_client.post(
            "/api/register",
            json={
                "name": "Someone Else",
                "email": "DUP@example.com",
                "password": DEFAULT_PASSWORD,
                "password_confirmation": DEFAULT_PASSWORD,
            },
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_password_confirmation_must_match(self, test_client):
        response = await test_client.post(
            "/api/register",
            json={
                "name": "Ada",
                "email": "ada@example.com",
                "password": DEFAULT_PASSWORD,
                "password_confirmation": "something-else",
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, test_client):
        response = await test_client.post(
            "/api/register",
            json={
                "name": "Ada",
                "email": "ada@example.com",
                "password": "short",
                "password_confirmation": "short",
            },
        )
        assert response.status_code == 422


class TestLoginLogout:

    @pytest.mark.asyncio
    async def test_login_issues_working_token(self, test_client, api):
        await api.register(email="grace@example.com")

        response = await test_client.post(
            "/api/login", json={"email": "grace@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await test_client.get("/api/user", headers=_auth(token))
        assert me.status_code == 200
        assert me.json()["email"] == "grace@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password_rejected(self, test_client, api):
        await api.register(email="grace@example.com")

        response = await test_client.post(
            "/api/login", json={"email": "grace@example.com", "password": "not-the-password"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "The provided credentials are incorrect."

    @pytest.mark.asyncio
    async def test_unknown_email_rejected_the_same_way(self, test_client):
        response = await test_client.post(
            "/api/login", json={"email": "nobody@example.com", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "The provided credentials are incorrect."

    @pytest.mark.asyncio
    async def test_logout_revokes_only_current_token(self, test_client, api):
        first_token, _ = await api.register(email="multi@example.com")
        login = await test_client.post(
            "/api/login", json={"email": "multi@example.com", "password": DEFAULT_PASSWORD}
        )
        second_token = login.json()["access_token"]

        response = await test_client.post("/api/logout", headers=_auth(first_token))
        assert response.status_code == 200
        assert response.json()["message"] == "Successfully logged out"

        assert (await test_client.get("/api/user", headers=_auth(first_token))).status_code == 401
        assert (await test_client.get("/api/user", headers=_auth(second_token))).status_code == 200


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, test_client):
        response = await test_client.get("/api/teams")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthenticated"
        assert body["message"] == "Unauthenticated."
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, test_client):
        response = await test_client.get("/api/user", headers=_auth("not-a-real-token"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_error_payload_carries_request_id(self, test_client):
        response = await test_client.get("/api/user", headers={"X-Request-ID": "trace-123"})

        assert response.status_code == 401
        assert response.json()["request_id"] == "trace-123"
        assert response.headers["X-Request-ID"] == "trace-123"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"]
        assert body["uptime_seconds"] >= 0
