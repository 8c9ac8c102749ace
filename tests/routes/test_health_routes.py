# tests/routes/test_health_routes.py
"""Tests for the /health endpoints."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient
from pydantic import SecretStr

from blogapi.configs import settings
from blogapi.db.connection import ConnectionManager
from blogapi.main import app


@pytest.fixture
def healthy_disk() -> Generator[MagicMock]:
    with patch("blogapi.monitoring.health.disk_usage", return_value=MagicMock(percent=40.0)) as m:
        yield m


class TestPublicEndpoints:
    """Tests for /health and /health/live."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "API is healthy"
        assert body["data"]["status"] == "ok"
        assert body["data"]["database"] == "connected"
        assert body["data"]["uptime"] >= 0

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "live"

    @pytest.mark.asyncio
    async def test_missing_connection_is_unavailable(self, client: AsyncClient) -> None:
        app.state.connection = None

        response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["kind"] == "connection_error"


class TestDatabaseHealth:
    """Tests for /health/db."""

    @pytest.mark.asyncio
    async def test_connected(self, client: AsyncClient) -> None:
        response = await client.get("/health/db")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Database is healthy"
        assert body["data"]["connectionState"] == "connected"
        assert body["data"]["driver"] == "aiosqlite"
        assert body["data"]["response_ms"] >= 0

    @pytest.mark.asyncio
    async def test_disconnected(self, client: AsyncClient, connection: ConnectionManager) -> None:
        await connection.disconnect()

        response = await client.get("/health/db")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Database connection unhealthy"
        assert body["data"]["connectionState"] == "disconnected"

    @pytest.mark.asyncio
    async def test_ping_failure(self, client: AsyncClient) -> None:
        with patch.object(ConnectionManager, "ping", AsyncMock(side_effect=TimeoutError())):
            response = await client.get("/health/db")

        assert response.status_code == 503
        assert response.json()["message"] == "Database connection failed"


class TestReadiness:
    """Tests for /health/ready."""

    @pytest.mark.asyncio
    async def test_ready(self, client: AsyncClient, healthy_disk: MagicMock) -> None:
        response = await client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "ready"
        assert data["checks"]["database"]["status"] == "pass"
        assert data["checks"]["disk"]["usage_percent"] == 40.0

    @pytest.mark.asyncio
    async def test_not_ready(self, client: AsyncClient, healthy_disk: MagicMock) -> None:
        with patch.object(ConnectionManager, "ping", AsyncMock(side_effect=ConnectionError())):
            response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["data"]["status"] == "not_ready"


class TestHealthAccess:
    """Tests for the API key guard of the detailed endpoints."""

    @pytest.mark.asyncio
    async def test_key_required_when_configured(
        self,
        client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "HEALTH_CHECK_API_KEY", SecretStr("s3cret"))

        missing = await client.get("/health/db")
        wrong = await client.get("/health/db", headers={"X-API-Key": "nope"})
        right = await client.get("/health/db", headers={"X-API-Key": "s3cret"})

        assert missing.status_code == 404
        assert wrong.status_code == 404
        assert right.status_code == 200

    @pytest.mark.asyncio
    async def test_public_endpoints_ignore_key(
        self,
        client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "HEALTH_CHECK_API_KEY", SecretStr("s3cret"))

        assert (await client.get("/health")).status_code == 200
        assert (await client.get("/health/live")).status_code == 200

    @pytest.mark.asyncio
    async def test_production_without_key(
        self,
        client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")

        response = await client.get("/health/db")

        assert response.status_code == 503
        assert "Strict-Transport-Security" in response.headers
