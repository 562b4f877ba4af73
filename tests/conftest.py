"""
Brainswarm Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── database:        Fresh SQLite schema (aiosqlite) per test
    ├── test_client:     HTTPX AsyncClient bound to the app, on `database`
    └── api:             Small helper for register/team/entry setup calls
"""

import os
import tempfile
from typing import Any, Dict, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before anything imports brainswarm.config
_TEST_DIR = tempfile.mkdtemp(prefix="brainswarm_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["APP_URL"] = "http://testserver"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"


DEFAULT_PASSWORD = "secret-password"


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_missing_team(mock_db_session):
            mock_db_session.get.return_value = None
            with pytest.raises(NotFoundError):
                await membership_service.get_team(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


def make_user(user_id: int = 1, name: str = "Ada", nickname: Optional[str] = "ada") -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.name = name
    user.nickname = nickname
    return user


@pytest.fixture
def user_factory():
    return make_user


# ══════════════════════════════════════════════════════════════════════════
# Integration Fixtures (real SQLite database)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """
    Creates every table before the test and drops them afterwards.

    The engine is disposed in the same event loop that used it, so no
    pooled aiosqlite connection outlives its loop.
    """
    from brainswarm.database import create_all_tables, dispose_engine, drop_all_tables

    await create_all_tables()
    yield
    await drop_all_tables()
    await dispose_engine()


@pytest_asyncio.fixture
async def test_client(database):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from brainswarm.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class ApiHelper:
    """Shortcuts for the setup calls most API tests share."""

    def __init__(self, client: AsyncClient):
        self.client = client
        self._counter = 0

    async def register(
        self, name: Optional[str] = None, email: Optional[str] = None, **extra: Any
    ) -> Tuple[str, Dict[str, Any]]:
        """Registers a user and returns (bearer token, user JSON)."""
        self._counter += 1
        name = name or f"User {self._counter}"
        email = email or f"user{self._counter}@example.com"
        response = await self.client.post(
            "/api/register",
            json={
                "name": name,
                "email": email,
                "password": DEFAULT_PASSWORD,
                "password_confirmation": DEFAULT_PASSWORD,
                **extra,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["access_token"], body["user"]

    async def create_team(
        self, token: str, name: str = "Platform", team_code: Optional[str] = None
    ) -> Dict[str, Any]:
        self._counter += 1
        response = await self.client.post(
            "/api/teams",
            json={"name": name, "team_code": team_code or f"TEAM{self._counter}"},
            headers=auth_headers(token),
        )
        assert response.status_code == 201, response.text
        return response.json()["team"]

    async def join(self, token: str, team_code: str) -> None:
        response = await self.client.post(
            "/api/teams/join", json={"team_code": team_code}, headers=auth_headers(token)
        )
        assert response.status_code == 200, response.text

    async def create_entry(self, token: str, team_id: int, **overrides: Any) -> Dict[str, Any]:
        payload = {
            "problem": "Manual invoice matching",
            "solution": "Automate matching with a rules engine",
            "area": "Finance",
            "time_saved_per_year": 300,
            "gross_profit_per_year": 6000,
            "effort": "low",
            "monetary_explanation": "Two FTE days per month",
        }
        payload.update(overrides)
        response = await self.client.post(
            f"/api/teams/{team_id}/entries", json=payload, headers=auth_headers(token)
        )
        assert response.status_code == 201, response.text
        return response.json()["entry"]


@pytest_asyncio.fixture
async def api(test_client):
    return ApiHelper(test_client)
