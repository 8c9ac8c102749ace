"""Comment schemas."""

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from blogapi.configs.settings import MAX_COMMENT_AUTHOR_LENGTH, MAX_COMMENT_LENGTH
from blogapi.schemas.common import validate_model
from blogapi.utils.helpers import strip_tags

CommentContent = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_COMMENT_LENGTH),
]
CommentAuthor = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_COMMENT_AUTHOR_LENGTH),
]


class CommentCreate(BaseModel):
    """Comment creation payload (the post comes from the URL)."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"content": "Great post!", "author": "Bob"}},
    )

    content: CommentContent = Field(..., description="Comment text (1-2000 characters)")
    author: CommentAuthor = Field(..., description="Author name (1-100 characters)")

    @field_validator("content", "author", mode="before")
    @classmethod
    def sanitize(cls, v: object) -> object:
        """Strip HTML markup, keeping the text."""
        return strip_tags(v) if isinstance(v, str) else v


class CommentUpdate(BaseModel):
    """Partial comment update."""

    model_config = ConfigDict(extra="ignore")

    content: CommentContent | None = None
    author: CommentAuthor | None = None

    @field_validator("content", "author", mode="before")
    @classmethod
    def sanitize(cls, v: object) -> object:
        if v is None:
            mssg = "Field cannot be null"
            raise ValueError(mssg)
        return strip_tags(v) if isinstance(v, str) else v


class CommentResponse(BaseModel):
    """Comment response model."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    post_id: str = Field(alias="postId")
    content: str
    author: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


def validate_comment_create(fields: Mapping[str, Any] | BaseModel) -> CommentCreate:
    """
    Validate a comment creation payload.

    Raises:
        ValidationError: If content or author is missing or out of range.
    """
    return validate_model(CommentCreate, fields)


def validate_comment_update(fields: Mapping[str, Any] | BaseModel) -> CommentUpdate:
    """Validate a partial comment update."""
    return validate_model(CommentUpdate, fields)
