"""
Middleware components for the blog API.

This module contains middleware for security headers, request logging and
CORS handling, plus the lifespan handler that builds the database
connection and the repositories on startup and releases them on shutdown.
"""

from asyncio import get_running_loop
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from logging import basicConfig, getLogger
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from rich.logging import RichHandler
from rich.traceback import install
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from uvloop import Loop

from blogapi.configs import settings
from blogapi.db.connection import ConnectionManager
from blogapi.errors.database import DatabaseError
from blogapi.monitoring.health import HealthChecker
from blogapi.monitoring.logging import bind_request_id, clear_context, configure_logging
from blogapi.repositories.blog import BlogRepository
from blogapi.utils.helpers import file_logger, get_summary, host

# --- Logging Configuration ---
basicConfig(
    level=settings.LOG_LEVEL,
    format="%(message)s",
    datefmt="%X",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = file_logger(getLogger("blogapi"))

install()

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Manage application startup and shutdown.

    A database that cannot be reached after the configured retries is fatal:
    the error propagates and the server does not start.
    """
    configure_logging()
    logger.info(f"Starting {app.title}...")

    connection = ConnectionManager()
    try:
        await connection.connect()
        if not settings.is_production:
            await connection.create_schema()
    except DatabaseError:
        logger.exception("Failed to initialize services")
        await connection.disconnect()
        raise

    app.state.connection = connection
    app.state.blog_repository = BlogRepository(connection)
    app.state.health_checker = HealthChecker(connection, version=settings.APP_VERSION)

    logger.info(f"is uvloop: {type(get_running_loop()) is Loop}")
    logger.info("Services initialized successfully")
    logger.info("Services:")
    logger.info("  - Backend API: http://localhost:8000")
    logger.info("  - API Documentation: http://localhost:8000/docs")
    logger.info("  - Health Check: http://localhost:8000/health")

    yield

    logger.info(f"Shutting down {app.title}...")
    await connection.disconnect()
    logger.info("Services cleaned up successfully")


def configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware from the configured origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Log request summary and timing, and tag the request with an ID."""
        start_time = perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        bind_request_id(request_id)

        summary = get_summary(request)
        route_info = summary or f"{request.method} {request.url.path}"
        logger.info(f"Request: {route_info}, from ip: {host(request)} [{request_id}]")

        try:
            response = await call_next(request)
        finally:
            clear_context()

        duration = perf_counter() - start_time
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url.path} "
            f"in {duration:.3f}s",
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Add security headers to all responses."""
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
