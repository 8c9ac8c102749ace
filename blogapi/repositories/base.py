"""Base repository for single-table database operations."""

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, col

from blogapi.errors.database import InvalidIdError


def parse_id(value: str | UUID, entity: str = "Record") -> UUID:
    """
    Parse an identifier, rejecting malformed values before any query.

    Args:
        value: UUID or its string form.
        entity: Entity name used in the error message.

    Returns:
        UUID: The parsed identifier.

    Raises:
        InvalidIdError: If ``value`` is not a well-formed UUID.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError as e:
        raise InvalidIdError(detail=f"Invalid {entity} ID format: {value}") from e


class BaseRepository[ModelT: SQLModel]:
    """
    Base repository implementing common statements for one table.

    Repositories are bound to the session they are given; committing is the
    caller's responsibility.

    Attributes:
        model: The SQLModel database model type.
        id_field: The name of the primary key field (default: "id").
    """

    model: type[ModelT]
    id_field: str = "id"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def id_column(self) -> Any:  # noqa: ANN401
        return col(getattr(self.model, self.id_field))

    def default_order(self) -> Sequence[ColumnElement[Any]]:
        """Ordering used for page fetches, newest first."""
        return (col(self.model.created_at).desc(), self.id_column.desc())  # type: ignore[attr-defined]

    async def get_by_id(self, record_id: UUID) -> ModelT | None:
        """
        Get a record by its ID.

        Args:
            record_id: Record UUID

        Returns:
            ModelT | None: Record if found, None otherwise
        """
        statement = select(self.model).where(self.id_column == record_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def exists(self, record_id: UUID) -> bool:
        """Check if a record exists without loading it."""
        statement = select(1).where(self.id_column == record_id).limit(1)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none() is not None

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        """
        Count records matching ``criteria``.

        Returns:
            int: Number of matching records
        """
        statement = select(func.count()).select_from(self.model).where(*criteria)
        result = await self.session.execute(statement)
        count = result.scalar()
        return count if count is not None else 0

    async def fetch_page(
        self,
        offset: int,
        limit: int,
        *criteria: ColumnElement[bool],
    ) -> list[ModelT]:
        """
        Fetch one page of records matching ``criteria``, newest first.

        Args:
            offset: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            list[ModelT]: Records of the page
        """
        statement = (
            select(self.model)
            .where(*criteria)
            .order_by(*self.default_order())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def add(self, record: ModelT) -> ModelT:
        """Add a record, flush it and reload its column values."""
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def update(self, record: ModelT, values: dict[str, Any]) -> ModelT:
        """Apply ``values`` to ``record`` and flush."""
        for key, value in values.items():
            setattr(record, key, value)
        return await self.add(record)

    async def delete(self, record: ModelT) -> None:
        await self.session.delete(record)
        await self.session.flush()
