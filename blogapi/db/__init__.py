"""Database connection, retry policy and transaction helpers."""

from blogapi.db.connection import (
    ConnectionConfig,
    ConnectionManager,
    ConnectionState,
    ConnectionStatus,
    validate_database_url,
)
from blogapi.db.retry import RETRIABLE_EXCEPTIONS, connection_retrying
from blogapi.db.unit_of_work import UnitOfWork

__all__ = [
    "RETRIABLE_EXCEPTIONS",
    "ConnectionConfig",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "UnitOfWork",
    "connection_retrying",
    "validate_database_url",
]
