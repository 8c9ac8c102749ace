from asyncio import sleep as async_sleep
from collections.abc import Awaitable, Callable
from logging import getLogger

from sqlalchemy.exc import SQLAlchemyError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from blogapi.utils.helpers import file_logger

logger = file_logger(getLogger(__name__))

# Errors worth another connection attempt
RETRIABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    SQLAlchemyError,
    ConnectionError,
    TimeoutError,
    OSError,
)

type SleepFunc = Callable[[float], Awaitable[None]]


def _log_before_sleep(
    max_attempts: int,
) -> Callable[[RetryCallState], None]:
    """
    Create a before_sleep callback that logs retry attempts.

    Args:
        max_attempts: Maximum number of attempts for log message.

    Returns:
        Callback function for tenacity before_sleep.
    """

    def before_sleep_callback(retry_state: RetryCallState) -> None:
        """Log retry information before sleeping."""
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        # next_action contains the sleep duration
        sleep_duration = retry_state.next_action.sleep if retry_state.next_action else 0

        logger.warning(
            "Database connection attempt %d/%d failed (%s: %s). Retrying in %.2fs",
            retry_state.attempt_number,
            max_attempts,
            type(exception).__name__,
            exception,
            sleep_duration,
        )

    return before_sleep_callback


def connection_retrying(
    max_attempts: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exec_retry: tuple[type[Exception], ...] = RETRIABLE_EXCEPTIONS,
    sleep: SleepFunc = async_sleep,
) -> AsyncRetrying:
    """
    Build the retry policy used for database connection attempts.

    The delay after the n-th failed attempt (0-based) is
    ``min(base_delay * 2**n, max_delay)``; the last error is re-raised once
    ``max_attempts`` attempts have failed.

    Args:
        max_attempts: Total number of attempts, including the first.
        base_delay: Delay after the first failure in seconds.
        max_delay: Upper bound for a single delay in seconds.
        exec_retry: Tuple of exception types to retry on.
        sleep: Awaitable sleep function, replaceable in tests.

    Returns:
        Configured tenacity AsyncRetrying instance.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, max=max_delay),
        retry=retry_if_exception_type(exec_retry),
        before_sleep=_log_before_sleep(max_attempts),
        sleep=sleep,
        reraise=True,
    )
