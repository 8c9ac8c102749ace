# tests/routes/conftest.py
"""Pytest fixtures for route tests."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from blogapi.db.connection import ConnectionManager
from blogapi.main import app
from blogapi.managers.rate_limiter import limiter
from blogapi.monitoring.health import HealthChecker
from blogapi.repositories.blog import BlogRepository


@pytest.fixture
async def client(
    connection: ConnectionManager,
    repo: BlogRepository,
) -> AsyncGenerator[AsyncClient]:
    """
    Create async HTTP client for testing.

    The transport does not run the lifespan, so the services it would build
    are placed on the application state here.
    """
    app.state.connection = connection
    app.state.blog_repository = repo
    app.state.health_checker = HealthChecker(connection, version=app.version)
    limiter.enabled = False
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac
    limiter.enabled = True
    app.state.connection = None
    app.state.blog_repository = None
    app.state.health_checker = None


@pytest.fixture
def post_payload() -> dict[str, Any]:
    return {"title": "Hello World", "content": "1234567890", "author": "Ann"}


@pytest.fixture
async def created_post(client: AsyncClient, post_payload: dict[str, Any]) -> dict[str, Any]:
    """A post created through the API."""
    response = await client.post("/api/posts", json=post_payload)
    assert response.status_code == 201
    return response.json()["data"]
