"""
Kubernetes-compatible health checks with dependency validation.

- /health/live (Liveness): Basic app responsiveness - no external deps
- /health/ready (Readiness): Database and disk checks
- /health (Combined): Readiness plus the connection state

Response Format
---------------
{
    "status": "ready" | "not_ready" | "live",
    "timestamp": "2025-01-01T12:00:00+00:00",
    "version": "1.0.0",
    "checks": {
        "database": {"status": "pass", "response_ms": 15, "state": "connected"},
        "disk": {"status": "pass", "usage_percent": 45}
    }
}
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from time import perf_counter
from typing import Any

from psutil import disk_usage
from sqlalchemy.exc import SQLAlchemyError

from blogapi.db.connection import ConnectionManager
from blogapi.errors.database import DatabaseError
from blogapi.utils.helpers import today_str


class CheckStatus(StrEnum):
    """Status values for individual health checks."""

    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


class OverallStatus(StrEnum):
    """Overall health status."""

    READY = "ready"
    NOT_READY = "not_ready"
    LIVE = "live"


@dataclass
class ComponentCheck:
    """
    Result of an individual health check component.

    Attributes
    ----------
    status : CheckStatus
        Status of the check (pass, fail, warn)
    response_ms : int | None
        Response time in milliseconds
    message : str | None
        Optional message or error details
    details : dict[str, Any]
        Additional check-specific details
    """

    status: CheckStatus
    response_ms: int | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"status": self.status.value}
        if self.response_ms is not None:
            result["response_ms"] = self.response_ms
        if self.message is not None:
            result["message"] = self.message
        result.update(self.details)
        return result


@dataclass
class HealthStatus:
    """Complete health status response."""

    status: OverallStatus
    timestamp: str
    version: str
    checks: dict[str, ComponentCheck] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status in (OverallStatus.READY, OverallStatus.LIVE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "timestamp": self.timestamp,
            "version": self.version,
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
        }


class HealthChecker:
    """
    Health checker for liveness and readiness probes.

    Examples
    --------
    >>> checker = HealthChecker(connection, version="1.0.0")
    >>> readiness = await checker.check_readiness()
    >>> readiness.is_healthy
    True
    """

    def __init__(self, connection: ConnectionManager, version: str = "1.0.0") -> None:
        self.connection = connection
        self.version = version

    def check_liveness(self) -> HealthStatus:
        """Report that the process is responsive; no external dependency is touched."""
        return HealthStatus(
            status=OverallStatus.LIVE,
            timestamp=today_str(),
            version=self.version,
        )

    async def check_readiness(self) -> HealthStatus:
        """
        Check that the service can handle traffic.

        The service is not ready when the database does not answer or the
        disk is nearly full.
        """
        checks: dict[str, ComponentCheck] = {
            "database": await self.check_database(),
            "disk": self._check_disk(),
        }
        failed = any(check.status == CheckStatus.FAIL for check in checks.values())

        return HealthStatus(
            status=OverallStatus.NOT_READY if failed else OverallStatus.READY,
            timestamp=datetime.now(UTC).isoformat(),
            version=self.version,
            checks=checks,
        )

    async def check_database(self) -> ComponentCheck:
        """
        Check database connectivity with a round-trip query.

        Returns:
            ComponentCheck with the ping time and the connection state.
        """
        state = self.connection.get_state()
        details = {"state": state.state.value, "driver": state.driver}
        start = perf_counter()
        try:
            elapsed_ms = int(await self.connection.ping())
        except TimeoutError:
            return ComponentCheck(
                status=CheckStatus.FAIL,
                response_ms=int((perf_counter() - start) * 1000),
                message="Database check timed out",
                details=details,
            )
        except (DatabaseError, SQLAlchemyError, ConnectionError) as e:
            return ComponentCheck(
                status=CheckStatus.FAIL,
                response_ms=int((perf_counter() - start) * 1000),
                message=f"Database check failed: {e!s}",
                details=details,
            )

        return ComponentCheck(status=CheckStatus.PASS, response_ms=elapsed_ms, details=details)

    def _check_disk(self) -> ComponentCheck:
        """Disk usage above 90% warns, above 95% fails."""
        try:
            usage_percent = disk_usage("/").percent
        except OSError as e:
            return ComponentCheck(
                status=CheckStatus.WARN,
                message=f"Could not check disk: {e!s}",
            )

        if usage_percent > 95:
            status = CheckStatus.FAIL
        elif usage_percent > 90:
            status = CheckStatus.WARN
        else:
            status = CheckStatus.PASS
        return ComponentCheck(status=status, details={"usage_percent": usage_percent})
