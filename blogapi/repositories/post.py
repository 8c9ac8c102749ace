"""Post table statements."""

from typing import Any

from sqlalchemy import ColumnElement, or_
from sqlmodel import col

from blogapi.models.post import PostDB
from blogapi.repositories.base import BaseRepository


class PostRepository(BaseRepository[PostDB]):
    """Repository for the posts table."""

    model = PostDB

    @staticmethod
    def filters(
        status: str | None = None,
        author: str | None = None,
    ) -> list[ColumnElement[bool]]:
        """
        Build the WHERE clauses for a post listing.

        Args:
            status: Only posts with this status.
            author: Only posts by this author (exact match).

        Returns:
            list: Criteria to pass to ``count`` and ``fetch_page``.
        """
        criteria: list[ColumnElement[bool]] = []
        if status is not None:
            criteria.append(col(PostDB.status) == status)
        if author is not None:
            criteria.append(col(PostDB.author) == author)
        return criteria

    @staticmethod
    def search_filter(term: str) -> ColumnElement[Any]:
        """Case-insensitive substring match over title and content."""
        return or_(
            col(PostDB.title).icontains(term, autoescape=True),
            col(PostDB.content).icontains(term, autoescape=True),
        )
