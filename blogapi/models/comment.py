"""Comment database model using SQLModel."""

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

from pydantic import ConfigDict
from sqlalchemy import DateTime, Index
from sqlalchemy.orm import declared_attr
from sqlmodel import Column, Field, ForeignKey, SQLModel, String

from blogapi.configs.settings import MAX_COMMENT_AUTHOR_LENGTH, MAX_COMMENT_LENGTH
from blogapi.utils.helpers import utc_now


class CommentDB(SQLModel, table=True):
    """
    Comment database model.

    Every comment belongs to exactly one post. The repository checks the
    post exists before inserting; the foreign key cascade is a second line
    of defence for deletes issued outside the repository.
    """

    __tablename__ = cast("declared_attr[str]", "comments")

    __table_args__ = (Index("ix_comments_post_created", "post_id", "created_at"),)

    # Primary key
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        nullable=False,
        description="Comment ID",
    )

    # Foreign key to Post
    post_id: UUID = Field(
        sa_column=Column(
            "post_id",
            ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        description="Post ID (foreign key to posts.id)",
    )

    content: str = Field(
        sa_column=Column(String(MAX_COMMENT_LENGTH), nullable=False),
        description="Comment content",
    )
    author: str = Field(
        sa_column=Column(String(MAX_COMMENT_AUTHOR_LENGTH), nullable=False),
        description="Author name",
    )

    # Timestamps
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
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "7d0f6f0a-4d1e-4c55-9b8f-3f6f1f7a2b10",
                "post_id": "550e8400-e29b-41d4-a716-446655440000",
                "content": "Great post!",
                "author": "Bob",
            },
        },
    )
