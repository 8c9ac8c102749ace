# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

import os

# Must happen before blogapi is imported anywhere
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402

from blogapi.db.connection import ConnectionConfig, ConnectionManager  # noqa: E402
from blogapi.repositories.blog import BlogRepository  # noqa: E402


class StepClock:
    """Deterministic clock advancing by a fixed step on every call."""

    def __init__(
        self,
        start: datetime = datetime(2026, 1, 1, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


async def no_sleep(delay: float) -> None:
    """Sleep replacement that returns immediately."""


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """URL of a throwaway SQLite database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}"


@pytest.fixture
def connection_config(sqlite_url: str) -> ConnectionConfig:
    return ConnectionConfig(url=sqlite_url, watchdog_enabled=False, reconnect_delay=0.01)


@pytest.fixture
async def connection(
    connection_config: ConnectionConfig,
) -> AsyncGenerator[ConnectionManager]:
    """Connected manager with the schema created."""
    manager = ConnectionManager(connection_config, sleep=no_sleep)
    await manager.connect()
    await manager.create_schema()
    yield manager
    await manager.disconnect()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def repo(connection: ConnectionManager, clock: StepClock) -> BlogRepository:
    """Repository backed by the temporary database."""
    return BlogRepository(connection, clock=clock)
