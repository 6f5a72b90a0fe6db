"""Tests for health check endpoint."""

from collections.abc import Awaitable, Callable
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from src.config import get_settings
from src.modules.auth.models import User
from src.modules.auth.roles import Role
from src.modules.common.clock import site_today
from src.modules.site import Services


@pytest.fixture
def healthy(client: TestClient, services: Services, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr("src.api.health.get_database", lambda: services.database)
    return client


@pytest.mark.asyncio
async def test_health_check_returns_healthy(
    healthy: TestClient, make_user: Callable[..., Awaitable[User]]
) -> None:
    """Health endpoint should return healthy status with the user count."""
    await make_user(Role.ADMIN, "walter")

    response = healthy.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["users"] == 1


@pytest.mark.asyncio
async def test_health_check_includes_version(healthy: TestClient) -> None:
    """Health endpoint should include app version from settings."""
    response = healthy.get("/health")

    assert response.json()["version"] == get_settings().app_version


@pytest.mark.asyncio
async def test_health_check_reports_database_failure(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Health endpoint should answer 503 when the database is unusable."""
    broken = Mock()
    broken.fetch_one.side_effect = RuntimeError("database is locked")
    monkeypatch.setattr("src.api.health.get_database", lambda: broken)

    response = client.get("/health")

    assert response.status_code == 503
    assert "RuntimeError" in response.json()["detail"]


@pytest.mark.asyncio
async def test_health_check_reports_site_date(healthy: TestClient) -> None:
    """Health endpoint should include today's date on the site calendar."""
    response = healthy.get("/health")

    data = response.json()
    assert data["site_date"] == site_today(get_settings().site_timezone).isoformat()
    assert data["published_articles"] == 0
    assert data["movies"] == 0
