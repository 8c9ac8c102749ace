from logging import getLogger

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from blogapi.errors.base import BaseAppError, create_exception_handler
from blogapi.utils.helpers import file_logger

logger = file_logger(getLogger(__name__))


class DatabaseError(BaseAppError):
    """Base exception for database errors."""

    kind = "database_error"

    def __init__(
        self,
        detail: str = "Database Error",
        status_code: int = HTTP_500_INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(detail, status_code)


class DatabaseConnectionError(DatabaseError):
    """Exception raised when the database cannot be reached after retries."""

    kind = "connection_error"

    def __init__(
        self,
        detail: str = "Failed to connect to the database",
    ) -> None:
        super().__init__(detail, HTTP_503_SERVICE_UNAVAILABLE)


class DatabaseConfigurationError(DatabaseError):
    """Exception raised when database configuration is invalid."""

    kind = "invalid_configuration"

    def __init__(
        self,
        detail: str = "Invalid database configuration",
    ) -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


class DatabaseInitializationError(DatabaseError):
    """Exception raised when database initialization fails."""

    kind = "initialization_error"

    def __init__(
        self,
        detail: str = "Failed to initialize database",
    ) -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


class RecordNotFoundError(DatabaseError):
    """Exception raised when a record is not found."""

    kind = "not_found"

    def __init__(
        self,
        detail: str = "Record not found",
    ) -> None:
        super().__init__(detail, HTTP_404_NOT_FOUND)


class IntegrityViolationError(RecordNotFoundError):
    """Exception raised when a comment references a post that does not exist."""

    def __init__(
        self,
        detail: str = "Referenced post does not exist",
    ) -> None:
        super().__init__(detail)


class InvalidIdError(DatabaseError):
    """Exception raised when an identifier is not a well-formed UUID."""

    kind = "invalid_id"

    def __init__(
        self,
        detail: str = "Invalid ID format",
    ) -> None:
        super().__init__(detail, HTTP_400_BAD_REQUEST)


class TransactionError(DatabaseError):
    """Exception raised when a transaction fails."""

    kind = "transaction_error"

    def __init__(
        self,
        detail: str = "Transaction failed",
    ) -> None:
        super().__init__(detail, HTTP_500_INTERNAL_SERVER_ERROR)


database_exception_handler = create_exception_handler(logger)
