"""
Health Routes.

- ``/health``: overall status and uptime
- ``/health/live``: liveness probe, no dependency checks
- ``/health/ready``: readiness probe (database and disk)
- ``/health/db``: database connection state and round-trip time

Access
------
When ``HEALTH_CHECK_API_KEY`` is set, ``/health/ready`` and ``/health/db``
require it in ``X-API-Key``; a wrong key answers 404 so the endpoints are not
discoverable. Without a configured key they are open outside production and
unavailable (503) in production.
"""

from datetime import UTC, datetime
from logging import getLogger
from secrets import compare_digest
from time import monotonic
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import ORJSONResponse
from starlette.status import (
    HTTP_200_OK,
    HTTP_404_NOT_FOUND,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from blogapi.configs import settings
from blogapi.dependencies import ConnectionDep, HealthDep
from blogapi.errors.base import BaseAppError
from blogapi.managers.rate_limiter import limiter
from blogapi.monitoring.health import CheckStatus
from blogapi.schemas import ApiResponse
from blogapi.utils.helpers import file_logger, host

router = APIRouter(prefix="/health", tags=["🩺 Health"])

logger = file_logger(getLogger(__name__))

STARTED_AT = monotonic()


class HealthAccessError(BaseAppError):
    """Raised when a protected health endpoint is called without access."""

    kind = "health_access_denied"


def verify_health_access(
    request: Request,
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Guard the detailed health endpoints with the configured API key."""
    expected = settings.HEALTH_CHECK_API_KEY
    if expected is None:
        if settings.is_production:
            logger.warning("Health check API key not configured")
            raise HealthAccessError("Service temporarily unavailable", HTTP_503_SERVICE_UNAVAILABLE)
        return

    if not x_api_key or not compare_digest(x_api_key, expected.get_secret_value()):
        logger.warning(f"Unauthorized health check access attempt from ip: {host(request)}")
        raise HealthAccessError("Not found", HTTP_404_NOT_FOUND)


def envelope(
    data: dict[str, Any],
    message: str,
    status_code: int = HTTP_200_OK,
) -> ORJSONResponse:
    body = ApiResponse[dict[str, Any]](
        success=status_code < 400,
        data=data,
        message=message,
        status_code=status_code,
    )
    return ORJSONResponse(body.model_dump(by_alias=True), status_code=status_code)


@router.get(
    "",
    response_class=ORJSONResponse,
    summary="Health check endpoint",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {"status": "ok", "timestamp": "...", "uptime": 12.5},
                        "message": "API is healthy",
                        "statusCode": 200,
                    },
                },
            },
        },
    },
    operation_id="health_check",
)
@limiter.exempt
async def health_check(request: Request, connection: ConnectionDep) -> ORJSONResponse:
    """
    Basic health check with uptime and database state.

    Parameters
    ----------
    request : Request
        Current request context.

    Returns
    -------
    ORJSONResponse
        API status, uptime in seconds and the raw connection state.
    """
    state = connection.get_state()
    data = {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(monotonic() - STARTED_AT, 3),
        "version": request.app.version,
        "database": state.state.value,
    }
    return envelope(data, "API is healthy")


@router.get("/live", response_class=ORJSONResponse, summary="Liveness probe", operation_id="health_live")
@limiter.exempt
async def liveness(request: Request, checker: HealthDep) -> ORJSONResponse:
    return envelope(checker.check_liveness().to_dict(), "API is alive")


@router.get(
    "/ready",
    response_class=ORJSONResponse,
    summary="Readiness probe",
    dependencies=[Depends(verify_health_access)],
    operation_id="health_ready",
)
@limiter.exempt
async def readiness(request: Request, checker: HealthDep) -> ORJSONResponse:
    """Readiness probe; 503 when a dependency check fails."""
    status = await checker.check_readiness()
    if status.is_healthy:
        return envelope(status.to_dict(), "API is ready")
    return envelope(status.to_dict(), "API is not ready", HTTP_503_SERVICE_UNAVAILABLE)


@router.get(
    "/db",
    response_class=ORJSONResponse,
    summary="Database health check",
    dependencies=[Depends(verify_health_access)],
    operation_id="health_db",
)
@limiter.exempt
async def database_health(
    request: Request,
    connection: ConnectionDep,
    checker: HealthDep,
) -> ORJSONResponse:
    """
    Database connection health.

    Returns 200 when connected and answering a ping, 503 otherwise.
    """
    state = connection.get_state()
    data: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "connectionState": state.state.value,
        "driver": state.driver,
    }

    if not state.connected:
        data.update(status="error", database=state.state.value)
        logger.warning(f"Database health check failed: {state.state.value}")
        return envelope(data, "Database connection unhealthy", HTTP_503_SERVICE_UNAVAILABLE)

    check = await checker.check_database()
    if check.status != CheckStatus.PASS:
        data.update(status="error", database="disconnected", message=check.message)
        logger.warning(f"Database health check failed: {check.message}")
        return envelope(data, "Database connection failed", HTTP_503_SERVICE_UNAVAILABLE)

    data.update(status="ok", database="connected", response_ms=check.response_ms)
    return envelope(data, "Database is healthy")
