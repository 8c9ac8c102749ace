from blogapi.managers.rate_limiter import (
    READ_LIMIT,
    WRITE_LIMIT,
    get_identifier,
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "READ_LIMIT",
    "WRITE_LIMIT",
    "get_identifier",
    "limiter",
    "rate_limit_exceeded_handler",
]
