"""Custom validation error handling for FastAPI."""

from logging import getLogger
from typing import Any, cast

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.status import HTTP_400_BAD_REQUEST

from blogapi.errors.base import BaseAppError, create_exception_handler, error_envelope
from blogapi.utils.helpers import file_logger, host

logger = file_logger(getLogger(__name__))


class ValidationError(BaseAppError):
    """Raised when input fails validation before reaching the store."""

    kind = "validation_error"

    def __init__(
        self,
        detail: str = "Validation Error",
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(detail=detail, status_code=HTTP_400_BAD_REQUEST)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        """
        Convert a pydantic validation error into the application error.

        Args:
            exc: The pydantic validation error.

        Returns:
            ValidationError listing each failing field.
        """
        errors = format_errors(exc.errors(), skip_location=0)
        message = "; ".join(f"{e['field'] or 'body'}: {e['message']}" for e in errors)
        return cls(detail=f"Validation failed: {message}", errors=errors)


def format_errors(
    raw_errors: "list[Any] | tuple[Any, ...]",
    skip_location: int = 1,
) -> list[dict[str, Any]]:
    """
    Format pydantic error dictionaries as ``{field, message, type}`` entries.

    Input values are never echoed back.

    Args:
        raw_errors: Error dictionaries as produced by pydantic.
        skip_location: Number of leading location parts to drop ('body', 'query').

    Returns:
        List of formatted errors.
    """
    formatted_errors = []
    for error in raw_errors:
        message = str(error.get("msg", "Invalid value"))
        formatted_errors.append(
            {
                "field": ".".join(str(loc) for loc in error.get("loc", ())[skip_location:]),
                "message": message.removeprefix("Value error, "),
                "type": error.get("type", "validation_error"),
            },
        )
    return formatted_errors


async def request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle FastAPI request validation errors with the standard envelope.

    Args:
        request: The incoming request.
        exc: The RequestValidationError exception.

    Returns:
        ORJSONResponse with formatted validation errors.
    """
    exec_error = cast(RequestValidationError, exc)
    formatted_errors = format_errors(exec_error.errors())

    logger.warning(
        f"Validation error for ip: {host(request)} at endpoint {request.url.path}: {formatted_errors}",
    )

    return ORJSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=error_envelope(
            "Validation failed",
            HTTP_400_BAD_REQUEST,
            ValidationError.kind,
            errors=formatted_errors,
        ),
    )


validation_exception_handler = create_exception_handler(logger)
