"""Comment table statements."""

from typing import cast
from uuid import UUID

from sqlalchemy import CursorResult, delete
from sqlmodel import col

from blogapi.models.comment import CommentDB
from blogapi.repositories.base import BaseRepository


class CommentRepository(BaseRepository[CommentDB]):
    """Repository for the comments table."""

    model = CommentDB

    async def count_by_post(self, post_id: UUID) -> int:
        return await self.count(col(CommentDB.post_id) == post_id)

    async def delete_by_post_id(self, post_id: UUID) -> int:
        """
        Delete every comment of a post in one statement.

        Args:
            post_id: Post UUID

        Returns:
            int: Number of deleted comments
        """
        statement = delete(CommentDB).where(col(CommentDB.post_id) == post_id)
        result = cast(CursorResult, await self.session.execute(statement))
        return result.rowcount or 0
