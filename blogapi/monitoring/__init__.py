"""
Observability for the blog API.

- Structured logging with sanitization (structlog)
- Liveness and readiness health checks

Usage
-----
>>> from blogapi.monitoring import configure_logging, get_logger
>>> configure_logging()
>>> get_logger("blogapi.audit").info("post_created", post_id="...")
"""

from blogapi.monitoring.health import (
    CheckStatus,
    ComponentCheck,
    HealthChecker,
    HealthStatus,
    OverallStatus,
)
from blogapi.monitoring.logging import (
    AUDIT_LOGGER_NAME,
    bind_request_id,
    clear_context,
    configure_logging,
    get_logger,
    sanitize_headers,
    sanitize_log_message,
)

__all__ = [
    "AUDIT_LOGGER_NAME",
    "CheckStatus",
    "ComponentCheck",
    "HealthChecker",
    "HealthStatus",
    "OverallStatus",
    "bind_request_id",
    "clear_context",
    "configure_logging",
    "get_logger",
    "sanitize_headers",
    "sanitize_log_message",
]
