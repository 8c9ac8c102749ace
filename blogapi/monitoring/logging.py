"""
Structured logging with sanitization.

This module wires structlog on top of the standard library loggers:
- Pretty console output for development
- JSON output elsewhere (one object per line)
- Control character escaping to prevent log injection
- Redaction of tokens and e-mail addresses
- Request ID correlation through context variables (merged into every event)

Examples
--------
>>> from blogapi.monitoring import get_logger
>>> audit = get_logger("blogapi.audit")
>>> audit.info("post_created", operation="create_post", post_id="...")
"""

from logging import getLogger, root
from re import Pattern
from re import compile as re_compile
from typing import Any

from structlog import configure
from structlog import get_logger as struct_logger
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
)
from structlog.dev import ConsoleRenderer, RichTracebackFormatter
from structlog.processors import (
    JSONRenderer,
    StackInfoRenderer,
    UnicodeDecoder,
    add_log_level,
    format_exc_info,
)
from structlog.processors import (
    json as struct_json,
)
from structlog.stdlib import (
    BoundLogger,
    LoggerFactory,
    PositionalArgumentsFormatter,
    add_logger_name,
    filter_by_level,
)
from structlog.types import EventDict, Processor, WrappedLogger

from blogapi.configs.settings import settings
from blogapi.utils.helpers import file_logger, today_str

AUDIT_LOGGER_NAME = "blogapi.audit"

# Sensitive headers to redact
SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {
        "authorization",
        "cookie",
        "x-api-key",
        "proxy-authorization",
    },
)

# JWTs first, they contain dots
PII_PATTERNS: list[tuple[Pattern, str]] = [
    (re_compile(r"eyJ[a-zA-Z0-9_-]*\.eyJ[a-zA-Z0-9_-]*\.[a-zA-Z0-9_-]*"), "[REDACTED_JWT]"),
    (re_compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "[REDACTED_EMAIL]"),
]

CONTROL_CHARS = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": ""})


def sanitize_log_message(message: str) -> str:
    r"""
    Escape control characters in a log message.

    Examples
    --------
    >>> sanitize_log_message("Hello\nWorld")
    'Hello\\nWorld'
    """
    return message.translate(CONTROL_CHARS)


def sanitize_headers(headers: dict[str, Any]) -> dict[str, Any]:
    """
    Return headers with sensitive values redacted.

    Examples
    --------
    >>> sanitize_headers({"Authorization": "Bearer token123", "Content-Type": "json"})
    {'Authorization': '[REDACTED]', 'Content-Type': 'json'}
    """
    return {k: "[REDACTED]" if k.lower() in SENSITIVE_HEADERS else v for k, v in headers.items()}


def redact_pii(message: str) -> str:
    """
    Redact tokens and e-mail addresses from a log message.

    Examples
    --------
    >>> redact_pii("Comment by bob@example.com")
    'Comment by [REDACTED_EMAIL]'
    """
    for pattern, replacement in PII_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add a local timestamp to the log entry."""
    event_dict["timestamp"] = today_str()
    return event_dict


def sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Sanitize every string value of the event dictionary.

    Args:
        logger: The wrapped logger instance.
        method_name: The name of the logging method being called.
        event_dict: The event dictionary being built.

    Returns:
        Sanitized event dictionary.
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_pii(sanitize_log_message(value))
        elif key.lower() == "headers" and isinstance(value, dict):
            event_dict[key] = sanitize_headers(value)
    return event_dict


def get_renderer(*, colors: bool = True) -> Processor:
    """
    Pick the final renderer for the current environment.

    Args:
        colors: Whether to enable colors in ConsoleRenderer.
    """
    if settings.ENVIRONMENT == "development":
        return ConsoleRenderer(
            colors=colors,
            pad_level=False,
            exception_formatter=RichTracebackFormatter(),
        )
    return JSONRenderer(serializer=struct_json.dumps)


def configure_logging() -> None:
    """
    Configure structlog for the application.

    Events are rendered by structlog and handed to the standard library
    loggers, so they reach the console handler installed at startup and the
    rotating file handler attached by ``get_logger``.
    """
    root.setLevel(settings.LOG_LEVEL)
    is_development = settings.ENVIRONMENT == "development"

    processors: list[Processor] = [
        filter_by_level,
        merge_contextvars,
        add_logger_name,
        add_log_level,
        add_timestamp,
        PositionalArgumentsFormatter(),
        StackInfoRenderer(),
    ]
    # ConsoleRenderer formats exceptions itself
    if not is_development:
        processors.append(format_exc_info)
    processors.extend([UnicodeDecoder(), sanitize_event_dict, get_renderer(colors=is_development)])

    configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a structured logger instance.

    The underlying standard library logger also receives the rotating file
    handler when file logging is enabled.

    Args:
        name: The name of the logger (typically __name__).

    Returns:
        Configured structlog BoundLogger instance.
    """
    file_logger(getLogger(name))
    return struct_logger(name)


def bind_request_id(request_id: str) -> None:
    """Bind request ID to the current logging context."""
    bind_contextvars(request_id=request_id)


def clear_context() -> None:
    clear_contextvars()

