"""
Aggregate repository for posts and their comments.

This is the only component that writes the posts and comments tables. It
enforces that a comment always references an existing post, and deletes a
post together with its comments in one transaction.
"""

from asyncio import gather
from collections.abc import AsyncGenerator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from logging import getLogger
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import ColumnElement
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, col

from blogapi.db.connection import ConnectionManager
from blogapi.db.unit_of_work import UnitOfWork
from blogapi.errors.database import (
    DatabaseError,
    IntegrityViolationError,
    RecordNotFoundError,
)
from blogapi.errors.validation import ValidationError
from blogapi.models.comment import CommentDB
from blogapi.models.post import POST_STATUSES, PostDB
from blogapi.monitoring.logging import AUDIT_LOGGER_NAME, get_logger
from blogapi.repositories.base import BaseRepository, parse_id
from blogapi.repositories.comment import CommentRepository
from blogapi.repositories.post import PostRepository
from blogapi.schemas.comment import validate_comment_create, validate_comment_update
from blogapi.schemas.post import validate_post_create, validate_post_update
from blogapi.utils.helpers import file_logger, utc_now
from blogapi.utils.pagination import Page, PageParams

logger = file_logger(getLogger(__name__))
audit = get_logger(AUDIT_LOGGER_NAME)

type Clock = Callable[[], datetime]
type Fields = Mapping[str, Any] | BaseModel


def _check_status_filter(status: str | None) -> None:
    if status is not None and status not in POST_STATUSES:
        raise ValidationError(
            detail=f"{status} is not a valid status",
            errors=[{"field": "status", "message": "Status must be either draft or published"}],
        )


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Outcome of a cascade delete."""

    deleted_comment_count: int


class BlogRepository:
    """
    Repository for posts and comments.

    Each operation borrows its own session from the connection manager.
    Writes run inside a ``UnitOfWork``; the cascade delete is the only
    multi-statement transaction.

    Examples
    --------
    >>> repo = BlogRepository(connection)
    >>> post = await repo.create_post({"title": "Hello", "content": "World"})
    >>> post.status
    'draft'
    """

    def __init__(self, connection: ConnectionManager, clock: Clock = utc_now) -> None:
        """
        Initialize the repository.

        Args:
            connection: Connected database manager.
            clock: Source of entity timestamps.
        """
        self.connection = connection
        self.clock = clock
        self.unit_of_work = UnitOfWork(connection)

    # --- Posts ---

    async def create_post(self, fields: Fields) -> PostDB:
        """
        Validate and insert a post.

        Args:
            fields: Raw post fields (title, content, author, status).

        Returns:
            PostDB: The stored post, status defaulting to draft.

        Raises:
            ValidationError: If the fields are invalid; nothing is written.
        """
        data = validate_post_create(fields)
        now = self.clock()
        post = PostDB(**data.model_dump(), created_at=now, updated_at=now)

        async def work(session: AsyncSession) -> PostDB:
            return await PostRepository(session).add(post)

        post = await self.unit_of_work.run(work)
        audit.info("post_created", operation="create_post", post_id=str(post.id))
        return post

    async def get_post(self, post_id: str | UUID) -> PostDB:
        """
        Get a post by ID.

        Raises:
            InvalidIdError: If ``post_id`` is malformed.
            RecordNotFoundError: If no post has this ID.
        """
        uid = parse_id(post_id, "post")
        async with self._session() as session:
            post = await PostRepository(session).get_by_id(uid)
        if post is None:
            raise RecordNotFoundError(detail=f"Post with ID {uid} not found")
        return post

    async def list_posts(
        self,
        page: object = None,
        limit: object = None,
        *,
        status: str | None = None,
        author: str | None = None,
    ) -> Page[PostDB]:
        """
        List posts newest first.

        Malformed ``page`` and ``limit`` values are clamped instead of
        rejected.

        Args:
            page: Requested page (1-based).
            limit: Requested page size (1 to 100).
            status: Optional status filter.
            author: Optional exact author filter.

        Returns:
            Page[PostDB]: Posts of the page with totals.

        Raises:
            ValidationError: If ``status`` is not a known status.
        """
        _check_status_filter(status)
        params = PageParams.from_raw(page, limit)
        criteria = PostRepository.filters(status=status, author=author or None)
        return await self._paginate(PostRepository, params, criteria)

    async def search_posts(
        self,
        term: str | None,
        page: object = None,
        limit: object = None,
        *,
        status: str | None = None,
    ) -> Page[PostDB]:
        """
        Search posts whose title or content contains ``term`` (case-insensitive).

        A blank term gives an empty page.
        """
        params = PageParams.from_raw(page, limit)
        term = (term or "").strip()
        if not term:
            return Page(items=[], total=0, page=params.page, limit=params.limit)

        _check_status_filter(status)
        criteria = [PostRepository.search_filter(term), *PostRepository.filters(status=status)]
        return await self._paginate(PostRepository, params, criteria)

    async def update_post(self, post_id: str | UUID, fields: Fields) -> PostDB:
        """
        Apply a partial update to a post.

        Only supplied fields are validated and replaced; ``updated_at`` is
        refreshed.

        Raises:
            InvalidIdError: If ``post_id`` is malformed.
            ValidationError: If a supplied field is invalid.
            RecordNotFoundError: If no post has this ID.
        """
        uid = parse_id(post_id, "post")
        values = validate_post_update(fields).model_dump(exclude_unset=True)
        return await self._update_post(
            uid,
            values,
            operation="update_post",
            event="post_updated",
        )

    async def publish_post(self, post_id: str | UUID) -> PostDB:
        uid = parse_id(post_id, "post")
        return await self._update_post(
            uid,
            {"status": "published"},
            operation="publish_post",
            event="post_published",
        )

    async def unpublish_post(self, post_id: str | UUID) -> PostDB:
        uid = parse_id(post_id, "post")
        return await self._update_post(
            uid,
            {"status": "draft"},
            operation="unpublish_post",
            event="post_unpublished",
        )

    async def delete_post(self, post_id: str | UUID) -> DeleteResult:
        """
        Delete a post and all of its comments atomically.

        Comments are deleted first, then the post, in one transaction. If
        any step fails the whole transaction is rolled back.

        Args:
            post_id: ID of the post to delete.

        Returns:
            DeleteResult: Number of comments deleted with the post.

        Raises:
            InvalidIdError: If ``post_id`` is malformed.
            RecordNotFoundError: If no post has this ID (nothing is deleted).
            TransactionError: If the store failed; nothing is deleted.
        """
        uid = parse_id(post_id, "post")

        async def work(session: AsyncSession) -> int:
            posts = PostRepository(session)
            post = await posts.get_by_id(uid)
            if post is None:
                raise RecordNotFoundError(detail=f"Post with ID {uid} not found")

            deleted = await CommentRepository(session).delete_by_post_id(uid)
            await posts.delete(post)
            return deleted

        deleted = await self.unit_of_work.run(work)
        audit.info(
            "post_deleted",
            operation="delete_post",
            post_id=str(uid),
            deleted_comment_count=deleted,
        )
        return DeleteResult(deleted_comment_count=deleted)

    # --- Comments ---

    async def create_comment(self, post_id: str | UUID, fields: Fields) -> CommentDB:
        """
        Validate and insert a comment on an existing post.

        Validation runs first, then the post existence check, then the insert.

        Args:
            post_id: ID of the post being commented.
            fields: Raw comment fields (content, author).

        Returns:
            CommentDB: The stored comment.

        Raises:
            InvalidIdError: If ``post_id`` is malformed.
            ValidationError: If the fields are invalid.
            IntegrityViolationError: If the post does not exist.
        """
        uid = parse_id(post_id, "post")
        data = validate_comment_create(fields)
        now = self.clock()
        comment = CommentDB(post_id=uid, **data.model_dump(), created_at=now, updated_at=now)

        async def work(session: AsyncSession) -> CommentDB:
            if not await PostRepository(session).exists(uid):
                logger.warning(f"Integrity violation: comment references missing post {uid}")
                raise IntegrityViolationError(detail=f"Post with ID {uid} not found")
            return await CommentRepository(session).add(comment)

        comment = await self.unit_of_work.run(work)
        audit.info(
            "comment_created",
            operation="create_comment",
            post_id=str(uid),
            comment_id=str(comment.id),
        )
        return comment

    async def get_comment(self, comment_id: str | UUID) -> CommentDB:
        """
        Get a comment by ID.

        Raises:
            InvalidIdError: If ``comment_id`` is malformed.
            RecordNotFoundError: If no comment has this ID.
        """
        uid = parse_id(comment_id, "comment")
        async with self._session() as session:
            comment = await CommentRepository(session).get_by_id(uid)
        if comment is None:
            raise RecordNotFoundError(detail=f"Comment with ID {uid} not found")
        return comment

    async def list_comments_by_post(
        self,
        post_id: str | UUID,
        page: object = None,
        limit: object = None,
    ) -> Page[CommentDB]:
        """
        List a post's comments newest first.

        Raises:
            InvalidIdError: If ``post_id`` is malformed.
            RecordNotFoundError: If the post does not exist.
        """
        uid = parse_id(post_id, "post")
        params = PageParams.from_raw(page, limit)
        async with self._session() as session:
            post_exists = await PostRepository(session).exists(uid)
        if not post_exists:
            raise RecordNotFoundError(detail=f"Post with ID {uid} not found")

        criteria = [col(CommentDB.post_id) == uid]
        return await self._paginate(CommentRepository, params, criteria)

    async def count_comments(self, post_id: str | UUID) -> int:
        uid = parse_id(post_id, "post")
        async with self._session() as session:
            return await CommentRepository(session).count_by_post(uid)

    async def update_comment(self, comment_id: str | UUID, fields: Fields) -> CommentDB:
        """
        Apply a partial update to a comment (content and/or author).

        Raises:
            InvalidIdError: If ``comment_id`` is malformed.
            ValidationError: If a supplied field is invalid.
            RecordNotFoundError: If no comment has this ID.
        """
        uid = parse_id(comment_id, "comment")
        values = validate_comment_update(fields).model_dump(exclude_unset=True)

        async def work(session: AsyncSession) -> CommentDB:
            comments = CommentRepository(session)
            comment = await comments.get_by_id(uid)
            if comment is None:
                raise RecordNotFoundError(detail=f"Comment with ID {uid} not found")
            return await comments.update(comment, {**values, "updated_at": self.clock()})

        comment = await self.unit_of_work.run(work)
        audit.info(
            "comment_updated",
            operation="update_comment",
            comment_id=str(uid),
            fields=sorted(values),
        )
        return comment

    async def delete_comment(self, comment_id: str | UUID) -> None:
        """
        Delete a single comment.

        Raises:
            InvalidIdError: If ``comment_id`` is malformed.
            RecordNotFoundError: If no comment has this ID.
        """
        uid = parse_id(comment_id, "comment")

        async def work(session: AsyncSession) -> UUID:
            comments = CommentRepository(session)
            comment = await comments.get_by_id(uid)
            if comment is None:
                raise RecordNotFoundError(detail=f"Comment with ID {uid} not found")
            await comments.delete(comment)
            return comment.post_id

        parent_id = await self.unit_of_work.run(work)
        audit.info(
            "comment_deleted",
            operation="delete_comment",
            comment_id=str(uid),
            post_id=str(parent_id),
        )

    # --- Internals ---

    async def _update_post(
        self,
        uid: UUID,
        values: dict[str, Any],
        *,
        operation: str,
        event: str,
    ) -> PostDB:
        async def work(session: AsyncSession) -> PostDB:
            posts = PostRepository(session)
            post = await posts.get_by_id(uid)
            if post is None:
                raise RecordNotFoundError(detail=f"Post with ID {uid} not found")
            return await posts.update(post, {**values, "updated_at": self.clock()})

        post = await self.unit_of_work.run(work)
        audit.info(event, operation=operation, post_id=str(uid), fields=sorted(values))
        return post

    async def _paginate[ModelT: SQLModel](
        self,
        repository: type[BaseRepository[ModelT]],
        params: PageParams,
        criteria: list[ColumnElement[bool]],
    ) -> Page[ModelT]:
        """Run the count and the page fetch concurrently, one session each."""

        async def count() -> int:
            async with self._session() as session:
                return await repository(session).count(*criteria)

        async def fetch() -> list[ModelT]:
            async with self._session() as session:
                return await repository(session).fetch_page(params.offset, params.limit, *criteria)

        total, items = await gather(count(), fetch())
        return Page(items=items, total=total, page=params.page, limit=params.limit)

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession]:
        """Read-only session; store errors surface as ``DatabaseError``."""
        async with self.connection.session() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                if isinstance(e, DBAPIError) and e.connection_invalidated:
                    raise
                logger.exception("Database query failed")
                raise DatabaseError(detail=f"Database query failed: {e}") from e
