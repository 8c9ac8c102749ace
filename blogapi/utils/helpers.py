from collections.abc import MutableMapping
from datetime import UTC, datetime
from logging import INFO, Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup
from fastapi import FastAPI, Request
from fastapi.routing import APIRoute
from pythonjsonlogger.json import JsonFormatter
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError
from starlette.routing import BaseRoute, Match, Route

from blogapi.configs.settings import EXCERPT_LENGTH, settings


def host(request: Request) -> str:
    """Return the host IP address."""
    return request.client.host if request.client else "unknown"


def today_str() -> str:
    """Return the current local time as a string."""
    return datetime.now(datetime.now().astimezone().tzinfo).strftime(
        "%Y-%m-%d %H:%M:%S",
    )


def utc_now() -> datetime:
    """Default clock for entity timestamps."""
    return datetime.now(tz=UTC)


def get_summary(request: Request) -> str | None:
    """Extract route summary from request."""

    scope: MutableMapping[str, Any] = request.scope
    app: FastAPI = scope["app"]
    routes: list[BaseRoute] = app.routes

    summary = None
    for route in routes:
        is_api_route = type(route) is APIRoute
        is_route = type(route) is Route
        if is_api_route and route.matches(scope)[0] == Match.FULL:
            summary = route.summary
            break
        if is_route and route.matches(scope)[0] == Match.FULL:
            summary = route.name
            break

    return summary


def file_logger(logger: Logger) -> Logger:
    """
    Attach the shared rotating JSON file handler to a logger.

    The handler is only attached when ``LOG_TO_FILE`` is enabled, and only
    once per logger.

    Args:
        logger: Logger instance to extend.

    Returns:
        The same logger, for chaining at module import time.
    """
    if not settings.LOG_TO_FILE:
        return logger

    log_file = Path(settings.LOG_FILE)
    already_attached = any(
        isinstance(handler, RotatingFileHandler)
        and Path(handler.baseFilename) == log_file.resolve()
        for handler in logger.handlers
    )
    if already_attached:
        return logger

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
    handler.setLevel(INFO)
    handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return logger


def strip_tags(text: str) -> str:
    """
    Remove HTML markup from user supplied text, keeping the text content.

    Args:
        text: Raw text that may contain markup.

    Returns:
        Plain text with surrounding whitespace removed.
    """
    if not text:
        return text

    if "<" not in text:
        return text.strip()

    try:
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        return soup.get_text().strip()
    except ParserRejectedMarkup:
        return text.strip()


def mask_database_url(url: str) -> str:
    """
    Hide the password of a database URL for logging.

    Args:
        url: Database connection URL.

    Returns:
        URL with the password masked, or a truncated prefix if unparsable.
    """
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return f"{url[:20]}..."


def iso_datetime(value: datetime) -> str:
    """Format a timestamp as ISO 8601; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def make_excerpt(content: str, length: int = EXCERPT_LENGTH) -> str:
    """Return the first ``length`` characters of ``content``, with '...' when cut."""
    if len(content) <= length:
        return content
    return f"{content[:length]}..."
