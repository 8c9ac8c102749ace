"""Rate limiter configuration using slowapi."""

from logging import getLogger
from typing import cast

from fastapi import Request
from fastapi.responses import ORJSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from blogapi.configs import LimiterConfig
from blogapi.errors.base import error_envelope
from blogapi.utils.helpers import file_logger, host

logger = file_logger(getLogger(__name__))

# Per-route limits
READ_LIMIT = "60/minute"
WRITE_LIMIT = "20/minute"


def get_identifier(request: Request) -> str:
    """
    Get unique identifier for rate limiting.

    Uses API key from header if available, otherwise falls back to IP address.

    Args:
        request: FastAPI request object.

    Returns:
        Unique identifier string.
    """
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return f"apikey:{api_key}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(**LimiterConfig().model_dump(), key_func=get_identifier)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """
    Handle rate limit exceeded exceptions with the standard error envelope.

    Args:
        request: FastAPI request object.
        exc: RateLimitExceeded exception.

    Returns:
        JSON response with error details and the rate limit headers.
    """
    http_exc = cast(RateLimitExceeded, exc)
    logger.warning(f"Rate limit exceeded for ip: {host(request)} at {request.url.path}")

    response = _rate_limit_exceeded_handler(request, http_exc)
    content = error_envelope(
        "Too many requests, please try again later",
        HTTP_429_TOO_MANY_REQUESTS,
        "rate_limited",
        allowed_requests=http_exc.detail,
        retry_after=response.headers.get("retry-after"),
    )
    headers = {
        k: v
        for k, v in response.headers.items()
        if k.lower().startswith(("x-ratelimit", "retry-after"))
    }
    return ORJSONResponse(status_code=HTTP_429_TOO_MANY_REQUESTS, content=content, headers=headers)
