from blogapi.errors.base import BaseAppError, create_exception_handler, error_envelope
from blogapi.errors.database import (
    DatabaseConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    DatabaseInitializationError,
    IntegrityViolationError,
    InvalidIdError,
    RecordNotFoundError,
    TransactionError,
    database_exception_handler,
)
from blogapi.errors.validation import (
    ValidationError,
    request_validation_exception_handler,
    validation_exception_handler,
)

__all__ = [
    "BaseAppError",
    "DatabaseConfigurationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseInitializationError",
    "IntegrityViolationError",
    "InvalidIdError",
    "RecordNotFoundError",
    "TransactionError",
    "ValidationError",
    "create_exception_handler",
    "database_exception_handler",
    "error_envelope",
    "request_validation_exception_handler",
    "validation_exception_handler",
]
