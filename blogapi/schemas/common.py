"""Shared response envelope and validation helpers."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from blogapi.errors.validation import ValidationError
from blogapi.utils.pagination import Page


class ApiResponse[DataT](BaseModel):
    """Standard success envelope for every API response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: DataT | None = None
    message: str = "Success"
    status_code: int = Field(default=200, alias="statusCode")


class PaginationMeta(BaseModel):
    """Pagination block returned alongside a page of items."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next_page: bool = Field(alias="hasNextPage")
    has_prev_page: bool = Field(alias="hasPrevPage")

    @classmethod
    def from_page(cls, page: Page[Any]) -> "PaginationMeta":
        return cls(
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
            has_next_page=page.page < page.total_pages,
            has_prev_page=page.page > 1,
        )


class PageResponse[ItemT](BaseModel):
    """A page of serialized items."""

    items: list[ItemT]
    pagination: PaginationMeta


class DeletePostResponse(BaseModel):
    """Result of a cascade delete."""

    model_config = ConfigDict(populate_by_name=True)

    deleted_comment_count: int = Field(alias="deletedCommentCount")


def validate_model[ModelT: BaseModel](
    model: type[ModelT],
    fields: Mapping[str, Any] | BaseModel,
) -> ModelT:
    """
    Validate raw input against ``model``, raising the application error.

    Args:
        model: Pydantic model class to validate against.
        fields: Mapping of raw fields, or a model whose set fields are reused.

    Returns:
        ModelT: The validated model.

    Raises:
        ValidationError: If validation fails.
    """
    if isinstance(fields, model):
        return fields

    if isinstance(fields, BaseModel):
        data = fields.model_dump(exclude_unset=True)
    else:
        data = dict(fields)

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e
