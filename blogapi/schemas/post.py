"""
Post schemas.

Input models validate and normalize request payloads before anything is
written; response models define the wire representation of a post.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from blogapi.configs.settings import MAX_TITLE_LENGTH
from blogapi.schemas.common import validate_model

PostStatus = Literal["draft", "published"]

Title = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_TITLE_LENGTH),
]
Content = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Author = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


def _check_status(v: object) -> object:
    if v is not None and v not in ("draft", "published"):
        mssg = f"{v} is not a valid status. Status must be either draft or published"
        raise ValueError(mssg)
    return v


class PostCreate(BaseModel):
    """Post creation payload."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Hello World",
                "content": "My first post.",
                "author": "Ann",
                "status": "draft",
            },
        },
    )

    title: Title = Field(..., description="Post title (1-200 characters)")
    content: Content = Field(..., description="Post content")
    author: Author | None = Field(default=None, description="Author name")
    status: PostStatus = Field(default="draft", description="Post status")

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: object) -> object:
        """Default a missing status to draft and reject unknown values."""
        if v is None:
            return "draft"
        return _check_status(v)

    @field_validator("author", mode="after")
    @classmethod
    def blank_author_to_none(cls, v: str | None) -> str | None:
        return v or None


class PostUpdate(BaseModel):
    """Partial post update; only supplied fields are validated and applied."""

    model_config = ConfigDict(extra="ignore")

    title: Title | None = None
    content: Content | None = None
    author: Author | None = None
    status: PostStatus | None = None

    @field_validator("title", "content", "status", mode="before")
    @classmethod
    def reject_explicit_null(cls, v: object) -> object:
        """Required fields may be omitted but not cleared."""
        if v is None:
            mssg = "Field cannot be null"
            raise ValueError(mssg)
        return v

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: object) -> object:
        return _check_status(v)

    @field_validator("author", mode="after")
    @classmethod
    def blank_author_to_none(cls, v: str | None) -> str | None:
        return v or None


class PostResponse(BaseModel):
    """Post response model (wire representation)."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    title: str
    content: str
    excerpt: str
    author: str | None = None
    status: PostStatus
    is_published: bool = Field(alias="isPublished")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


def validate_post_create(fields: Mapping[str, Any] | BaseModel) -> PostCreate:
    """
    Validate a post creation payload.

    Args:
        fields: Raw mapping or an already built model.

    Returns:
        PostCreate: Normalized payload (trimmed, status defaulted).

    Raises:
        ValidationError: If any field is missing or out of range.
    """
    return validate_model(PostCreate, fields)


def validate_post_update(fields: Mapping[str, Any] | BaseModel) -> PostUpdate:
    """
    Validate a partial post update.

    Raises:
        ValidationError: If a supplied field is invalid.
    """
    return validate_model(PostUpdate, fields)
