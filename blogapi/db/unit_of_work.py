"""Transaction boundary for multi-statement writes."""

from collections.abc import Awaitable, Callable
from logging import getLogger

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blogapi.db.connection import ConnectionManager
from blogapi.errors.database import DatabaseConnectionError, TransactionError
from blogapi.utils.helpers import file_logger

logger = file_logger(getLogger(__name__))


class UnitOfWork:
    """
    Run a group of operations inside one transaction.

    Example:
        ```python
        async def work(session: AsyncSession) -> int:
            await session.execute(delete(CommentDB).where(...))
            await session.execute(delete(PostDB).where(...))
            return 2

        deleted = await UnitOfWork(connection).run(work)
        ```
    """

    def __init__(self, connection: ConnectionManager) -> None:
        self.connection = connection

    async def run[T](self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """
        Execute ``work`` with a session inside a transaction.

        Commits when ``work`` returns and rolls back when it raises. Nothing
        is retried.

        Args:
            work: Coroutine function receiving the transactional session.

        Returns:
            T: Whatever ``work`` returned.

        Raises:
            TransactionError: If the store rejected a statement or the commit.
            DatabaseConnectionError: If the connection was lost mid-transaction.
        """
        async with self.connection.session() as session:
            try:
                async with session.begin():
                    return await work(session)
            except SQLAlchemyError as e:
                logger.exception("Transaction error, rolled back")
                if isinstance(e, DBAPIError) and e.connection_invalidated:
                    raise DatabaseConnectionError(
                        detail="Lost connection to the database during a transaction",
                    ) from e
                raise TransactionError(detail=f"Transaction failed: {e}") from e
            except Exception as e:
                logger.info(f"Transaction rolled back: {type(e).__name__}")
                raise
