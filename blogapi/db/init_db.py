"""
Database initialization and verification script.

Connects with the configured retry policy, reports the connection state and
creates any missing tables.

Note:
    Production schemas are managed by Alembic migrations.
    Run 'alembic upgrade head' to apply them.
"""

from asyncio import run as asyncio_run
from logging import getLogger

from blogapi.db.connection import ConnectionManager
from blogapi.errors.database import DatabaseError, DatabaseInitializationError
from blogapi.utils.helpers import file_logger

logger = file_logger(getLogger(__name__))


async def main() -> None:
    """Verify the database connection and create the schema."""
    manager = ConnectionManager()
    try:
        logger.info("Verifying database connection...")
        await manager.connect()
        state = manager.get_state()
        logger.info(f"Connected using driver {state.driver} ({state.url})")
        await manager.create_schema()
        logger.info("Database ready!")
    except DatabaseError as e:
        logger.exception("Failed to initialize database")
        raise DatabaseInitializationError from e
    finally:
        await manager.disconnect()


if __name__ == "__main__":
    asyncio_run(main())
