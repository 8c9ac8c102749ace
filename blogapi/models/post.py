"""Post database model using SQLModel."""

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

from pydantic import ConfigDict
from sqlalchemy import DateTime, Index, Text, text
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, SQLModel, String

from blogapi.configs.settings import MAX_TITLE_LENGTH
from blogapi.utils.helpers import utc_now

POST_STATUSES: tuple[str, ...] = ("draft", "published")


class PostDB(SQLModel, table=True):
    """
    Post database model.

    This model represents the posts table. Comments reference it through
    ``comments.post_id``; deleting a post deletes its comments.
    """

    __tablename__ = cast("declared_attr[str]", "posts")

    __table_args__ = (
        Index("ix_posts_created_at_desc", text("created_at DESC")),
        Index("ix_posts_author_created", "author", "created_at"),
        Index("ix_posts_status_created", "status", "created_at"),
    )

    # Primary key
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        nullable=False,
        description="Post ID",
    )

    # Required fields
    title: str = Field(
        sa_column=Column(String(MAX_TITLE_LENGTH), nullable=False),
        description="Post title",
    )
    content: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Post content",
    )

    # Optional fields
    author: str | None = Field(
        default=None,
        sa_column=Column(String(100)),
        description="Author name",
    )
    status: str = Field(
        default="draft",
        sa_column=Column(String(20), nullable=False, index=True),
        description="Post status (draft, published)",
    )

    # Timestamps (timezone-aware)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last update timestamp",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "title": "Hello World",
                "content": "My first post.",
                "author": "Ann",
                "status": "draft",
            },
        },
    )

    @property
    def is_published(self) -> bool:
        return self.status == "published"
