"""
Database connection management.

A single ``ConnectionManager`` owns the async engine and its session factory
for the lifetime of the process. It is created by the application lifespan
and injected wherever sessions are needed.

Features:
    - Bounded exponential-backoff retries for the initial connection
    - Concurrent ``connect()`` callers share one in-flight attempt
    - Connection state queries for health checks
    - Watchdog that schedules a reconnect after an unexpected disconnect
"""

from asyncio import (
    AbstractEventLoop,
    Task,
    TimerHandle,
    gather,
    get_running_loop,
    shield,
    timeout,
    wait_for,
)
from asyncio import sleep as async_sleep
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from enum import StrEnum
from logging import getLogger
from time import perf_counter
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import ExceptionContext, make_url
from sqlalchemy.exc import ArgumentError, DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from blogapi.configs import SUPPORTED_DATABASE_SCHEMES, Settings, settings
from blogapi.db.retry import RETRIABLE_EXCEPTIONS, SleepFunc, connection_retrying
from blogapi.errors.database import DatabaseConfigurationError, DatabaseConnectionError
from blogapi.utils.helpers import file_logger, mask_database_url

logger = file_logger(getLogger(__name__))

PING_TIMEOUT = 2.0  # seconds


class ConnectionStatus(StrEnum):
    """Raw connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of the connection manager state."""

    connected: bool
    connecting: bool
    state: ConnectionStatus
    url: str
    driver: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["state"] = self.state.value
        return result


@dataclass
class ConnectionConfig:
    """Configuration for ConnectionManager."""

    url: str
    echo: bool = False
    pool_min_size: int = 2
    pool_max_size: int = 10
    pool_timeout: float = 30.0
    pool_recycle: int = 1800
    statement_timeout_ms: int = 30000
    connect_timeout: float = 5.0
    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0
    reconnect_delay: float = 5.0
    watchdog_enabled: bool = True
    production: bool = False

    @classmethod
    def from_settings(cls, config: Settings) -> "ConnectionConfig":
        """Build the connection configuration from application settings."""
        return cls(
            url=config.DATABASE_URL,
            echo=config.DATABASE_ECHO,
            pool_min_size=config.DB_POOL_MIN_SIZE,
            pool_max_size=config.DB_POOL_MAX_SIZE,
            pool_timeout=config.DB_POOL_TIMEOUT,
            pool_recycle=config.DB_POOL_RECYCLE,
            statement_timeout_ms=config.DB_STATEMENT_TIMEOUT_MS,
            connect_timeout=config.DB_CONNECT_TIMEOUT,
            max_attempts=config.DB_MAX_RETRIES,
            base_delay=config.DB_RETRY_BASE_DELAY,
            max_delay=config.DB_RETRY_MAX_DELAY,
            reconnect_delay=config.DB_RECONNECT_DELAY,
            watchdog_enabled=not config.is_test,
            production=config.is_production,
        )


def validate_database_url(url: str | None, *, production: bool = False) -> str:
    """
    Check that a database URL uses one of the supported drivers.

    Args:
        url: Database connection URL.
        production: Whether the service runs in production.

    Returns:
        str: The stripped URL.

    Raises:
        DatabaseConfigurationError: If the URL is missing or uses another scheme.
    """
    if not url or not url.strip():
        logger.error("Database URL is not defined")
        raise DatabaseConfigurationError(detail="Database URL is not configured")

    url = url.strip()
    if not url.startswith(SUPPORTED_DATABASE_SCHEMES):
        logger.error(f"Invalid database URL format: {mask_database_url(url)}")
        raise DatabaseConfigurationError(
            detail=f"Database URL must start with one of: {', '.join(SUPPORTED_DATABASE_SCHEMES)}",
        )

    if production and "localhost" in url:
        logger.warning("Using a localhost database connection in production")

    return url


class ConnectionManager:
    """
    Owner of the process-wide database engine.

    States:
        - DISCONNECTED: No usable engine, or the last connection was lost
        - CONNECTING: An attempt (with retries) is in flight
        - CONNECTED: The store answered a probe query
        - DISCONNECTING: ``disconnect()`` is disposing the engine

    The startup connection is retried a bounded number of times and its
    failure is fatal to the caller. Reconnects triggered by the watchdog are
    logged on failure and never raised.
    """

    def __init__(
        self,
        config: ConnectionConfig | None = None,
        *,
        sleep: SleepFunc = async_sleep,
    ) -> None:
        """
        Initialize the manager without opening any connection.

        Args:
            config: Connection configuration, defaults to the application settings.
            sleep: Awaitable sleep used between attempts.
        """
        self.config = config or ConnectionConfig.from_settings(settings)
        self._sleep = sleep
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[SQLModelAsyncSession] | None = None
        self._loop: AbstractEventLoop | None = None

        self._connected: bool = False
        self._connecting: bool = False
        self._closing: bool = False
        self._pending: Task[None] | None = None
        self._reconnect_handle: TimerHandle | None = None
        self._reconnect_task: Task[None] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get the active engine."""
        if self._engine is None:
            raise DatabaseConnectionError(detail="Database is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_connecting(self) -> bool:
        return self._connecting

    @property
    def reconnect_scheduled(self) -> bool:
        return self._reconnect_handle is not None

    async def connect(self) -> None:
        """
        Connect to the database, retrying with exponential backoff.

        Concurrent callers share the in-flight attempt. Returns immediately
        when already connected.

        Raises:
            DatabaseConfigurationError: If the URL is invalid (no I/O is attempted).
            DatabaseConnectionError: If every attempt failed.
        """
        if self._pending is not None and not self._pending.done():
            logger.debug("Connection attempt already in progress, awaiting it")
            await shield(self._pending)
            return

        if self._connected:
            logger.debug("Already connected to the database")
            return

        url = validate_database_url(self.config.url, production=self.config.production)
        self._loop = get_running_loop()
        if self._engine is None:
            self._create_engine(url)

        self._connecting = True
        self._pending = self._loop.create_task(self._connect_with_retry())
        await shield(self._pending)

    async def disconnect(self) -> None:
        """Dispose the engine. Safe to call when already disconnected."""
        self._cancel_reconnect()

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            await gather(self._pending, return_exceptions=True)

        if self._engine is not None:
            self._closing = True
            try:
                await self._engine.dispose()
                logger.info("Database connection closed successfully")
            finally:
                self._closing = False

        self._engine = None
        self._session_maker = None
        self._pending = None
        self._connected = False
        self._connecting = False

    def get_state(self) -> ConnectionState:
        """Return a snapshot of the connection state."""
        if self._closing:
            status = ConnectionStatus.DISCONNECTING
        elif self._connecting:
            status = ConnectionStatus.CONNECTING
        elif self._connected:
            status = ConnectionStatus.CONNECTED
        else:
            status = ConnectionStatus.DISCONNECTED

        driver = self._engine.dialect.driver if self._engine is not None else None
        return ConnectionState(
            connected=self._connected,
            connecting=self._connecting,
            state=status,
            url=mask_database_url(self.config.url),
            driver=driver,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """
        Borrow a session for one unit of work.

        Yields:
            AsyncSession: A fresh session bound to the shared engine.

        Raises:
            DatabaseConnectionError: If the manager is not connected or the
                connection was lost while the session was in use.
        """
        if self._session_maker is None:
            raise DatabaseConnectionError(detail="Database is not connected")

        async with self._session_maker() as session:
            try:
                yield session
            except DBAPIError as e:
                if e.connection_invalidated:
                    raise DatabaseConnectionError(
                        detail="Lost connection to the database",
                    ) from e
                raise

    async def ping(self) -> float:
        """
        Run a round-trip query.

        Returns:
            float: Elapsed time in milliseconds.
        """
        start = perf_counter()
        async with self.session() as session:
            await wait_for(session.execute(text("SELECT 1")), timeout=PING_TIMEOUT)
        return (perf_counter() - start) * 1000

    async def create_schema(self) -> None:
        """Create all tables registered on the SQLModel metadata."""
        from blogapi.models import CommentDB, PostDB  # noqa: F401, PLC0415

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database schema created")

    def notify_disconnected(self) -> None:
        """
        Record an unexpected loss of connection and schedule one reconnect.

        Every event while the engine is live may schedule a reconnect, so a
        failed automatic reconnect is retried on the next event. Ignored
        while disposing the engine or after ``disconnect()``.
        """
        if self._closing or self._engine is None:
            return

        if self._connected:
            self._connected = False
            logger.warning(f"Database disconnected: {mask_database_url(self.config.url)}")

        if not self.config.watchdog_enabled or self._connecting:
            return
        if self._reconnect_handle is not None or self._loop is None:
            return

        logger.info(f"Scheduling automatic reconnection in {self.config.reconnect_delay}s")
        self._reconnect_handle = self._loop.call_later(
            self.config.reconnect_delay,
            self._start_reconnect,
        )

    def _start_reconnect(self) -> None:
        self._reconnect_handle = None
        if self._connected or self._connecting:
            logger.info("Skipping automatic reconnection, connection already handled")
            return
        if self._loop is not None:
            self._reconnect_task = self._loop.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        logger.info("Attempting automatic reconnection...")
        try:
            await self.connect()
        except (DatabaseConnectionError, DatabaseConfigurationError):
            logger.exception("Automatic reconnection failed")

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None

    async def _connect_with_retry(self) -> None:
        attempts = 0
        retrying = connection_retrying(
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay,
            max_delay=self.config.max_delay,
            sleep=self._sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    logger.info(
                        f"Attempting to connect to database... (Attempt {attempts}/"
                        f"{self.config.max_attempts}) {mask_database_url(self.config.url)}",
                    )
                    await self._probe()
        except RETRIABLE_EXCEPTIONS as e:
            self._connecting = False
            logger.error(  # noqa: TRY400
                f"Max connection retries exceeded after {attempts} attempts: {e}",
            )
            raise DatabaseConnectionError(
                detail=f"Failed to connect to the database after {attempts} attempts: {e}",
            ) from e
        finally:
            self._connecting = False

        self._connected = True
        logger.info(f"Database connected successfully: {mask_database_url(self.config.url)}")

    async def _probe(self) -> None:
        """Open a connection and run a trivial query within the attempt timeout."""
        async with timeout(self.config.connect_timeout), self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def _create_engine(self, url: str) -> None:
        """
        Create the engine and session factory.

        Raises:
            DatabaseConfigurationError: If SQLAlchemy rejects the URL or the
                driver is not installed.
        """
        try:
            backend = make_url(url).get_backend_name()
            database = make_url(url).database
            kwargs: dict[str, Any] = {"echo": self.config.echo, "pool_pre_ping": True}

            if backend == "sqlite" and database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
            else:
                kwargs.update(
                    pool_size=self.config.pool_min_size,
                    max_overflow=self.config.pool_max_size - self.config.pool_min_size,
                    pool_timeout=self.config.pool_timeout,
                    pool_recycle=self.config.pool_recycle,
                )

            if backend == "postgresql":
                kwargs["connect_args"] = {
                    "timeout": self.config.connect_timeout,
                    "command_timeout": self.config.statement_timeout_ms / 1000,
                    "server_settings": {
                        "statement_timeout": str(self.config.statement_timeout_ms),
                        "lock_timeout": str(self.config.statement_timeout_ms),
                    },
                }

            engine = create_async_engine(url, **kwargs)
        except (ArgumentError, ImportError) as e:
            raise DatabaseConfigurationError(
                detail=f"Unusable database URL {mask_database_url(url)}: {e}",
            ) from e

        event.listen(engine.sync_engine, "handle_error", self._on_engine_error)
        self._engine = engine
        self._session_maker = async_sessionmaker(
            engine,
            class_=SQLModelAsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def _on_engine_error(self, context: ExceptionContext) -> None:
        """SQLAlchemy ``handle_error`` hook; forwards disconnects to the watchdog."""
        if not context.is_disconnect:
            return
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.notify_disconnected)
        else:
            self.notify_disconnected()
