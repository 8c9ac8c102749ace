from collections.abc import Awaitable, Callable
from logging import Logger
from typing import Any

from fastapi import Request
from fastapi.responses import ORJSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from blogapi.configs import settings
from blogapi.configs.settings import DEFAULT_ERROR_MESSAGE
from blogapi.utils.helpers import host


class BaseAppError(Exception):
    """Base exception class for application errors."""

    kind: str = "internal_error"

    def __init__(
        self,
        detail: str = "Internal Server Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        return self.detail


def error_envelope(
    message: str,
    status_code: int,
    kind: str,
    **extra: Any,  # noqa: ANN401
) -> dict[str, Any]:
    """Build the JSON body shared by every error response."""
    content: dict[str, Any] = {
        "success": False,
        "data": None,
        "message": message,
        "statusCode": status_code,
        "kind": kind,
    }
    content.update({k: v for k, v in extra.items() if v is not None})
    return content


def create_exception_handler(
    logger: Logger,
) -> Callable[[Request, Exception], Awaitable[ORJSONResponse]]:
    """
    Create a standardized exception handler for the application.

    Server errors replace their detail with a generic message outside
    development. In development the exception type and its cause are
    echoed back as well.

    Args:
        logger: Logger instance to use for logging exceptions.

    Returns:
        A callable exception handler.
    """

    async def handler(request: Request, exc: Exception) -> ORJSONResponse:
        status_code = getattr(exc, "status_code", HTTP_500_INTERNAL_SERVER_ERROR)
        detail = getattr(exc, "detail", "Internal Server Error")
        kind = getattr(exc, "kind", BaseAppError.kind)
        is_server_error = status_code >= HTTP_500_INTERNAL_SERVER_ERROR

        if is_server_error:
            logger.error(
                f"{detail} for ip: {host(request)} for endpoint {request.url.path}",
                exc_info=exc,
            )
        else:
            logger.warning(f"{detail} for ip: {host(request)} for endpoint {request.url.path}")

        extra: dict[str, Any] = {
            k: v
            for k, v in exc.__dict__.items()
            if k not in ("status_code", "detail") and not k.startswith("_")
        }
        if is_server_error and settings.is_development:
            extra["error"] = type(exc).__name__
            extra["cause"] = str(exc.__cause__) if exc.__cause__ else None
        elif is_server_error:
            detail = DEFAULT_ERROR_MESSAGE

        return ORJSONResponse(
            content=error_envelope(detail, status_code, kind, **extra),
            status_code=status_code,
        )

    return handler
