"""
Comment Routes.

Comments are created and listed under their post
(``/api/posts/{post_id}/comments``) and addressed directly by ID for reads,
updates and deletes (``/api/comments/{comment_id}``).
"""

from logging import getLogger
from typing import Annotated

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import ORJSONResponse
from starlette.responses import Response
from starlette.status import HTTP_201_CREATED

from blogapi.dependencies import RepoDep
from blogapi.managers.rate_limiter import READ_LIMIT, WRITE_LIMIT, limiter
from blogapi.models.comment import CommentDB
from blogapi.routes.posts import ERROR_RESPONSES
from blogapi.schemas import (
    ApiResponse,
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    PageResponse,
    PaginationMeta,
)
from blogapi.utils.helpers import file_logger, iso_datetime

router = APIRouter(prefix="/api", tags=["💬 Comments"])

logger = file_logger(getLogger(__name__))


def comment_to_response(comment: CommentDB) -> CommentResponse:
    """
    Convert a `CommentDB` instance to `CommentResponse`.

    Parameters
    ----------
    comment : CommentDB
        Database comment entity.

    Returns
    -------
    CommentResponse
        Response model with ISO timestamps.
    """
    return CommentResponse(
        id=str(comment.id),
        post_id=str(comment.post_id),
        content=comment.content,
        author=comment.author,
        created_at=iso_datetime(comment.created_at),
        updated_at=iso_datetime(comment.updated_at),
    )


@router.get(
    "/posts/{post_id}/comments",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PageResponse[CommentResponse]],
    summary="List comments of a post",
    description="Comments newest first. Malformed pagination values fall back to defaults.",
    responses=ERROR_RESPONSES,
    operation_id="comments_list_by_post",
)
@limiter.limit(READ_LIMIT)
async def list_comments(
    request: Request,
    response: Response,
    post_id: str,
    repo: RepoDep,
    page: Annotated[str | None, Query(description="Page number (1-based)")] = None,
    limit: Annotated[str | None, Query(description="Items per page (1-100)")] = None,
) -> ApiResponse[PageResponse[CommentResponse]]:
    """
    List a post's comments.

    Raises
    ------
    RecordNotFoundError
        If the post does not exist (404).
    """
    result = await repo.list_comments_by_post(post_id, page, limit)
    data = PageResponse[CommentResponse](
        items=[comment_to_response(comment) for comment in result.items],
        pagination=PaginationMeta.from_page(result),
    )
    return ApiResponse(data=data, message="Comments retrieved successfully")


@router.post(
    "/posts/{post_id}/comments",
    response_class=ORJSONResponse,
    response_model=ApiResponse[CommentResponse],
    status_code=HTTP_201_CREATED,
    summary="Comment on a post",
    description="HTML tags in content and author are stripped before saving.",
    responses=ERROR_RESPONSES,
    operation_id="comments_create",
)
@limiter.limit(WRITE_LIMIT)
async def create_comment(
    request: Request,
    response: Response,
    post_id: str,
    comment: Annotated[
        CommentCreate,
        Body(examples=[{"content": "Great post!", "author": "Bob"}]),
    ],
    repo: RepoDep,
) -> ApiResponse[CommentResponse]:
    """
    Create a comment on an existing post.

    Raises
    ------
    IntegrityViolationError
        If the post does not exist (404).
    """
    db_comment = await repo.create_comment(post_id, comment)
    return ApiResponse(
        data=comment_to_response(db_comment),
        message="Comment created successfully",
        status_code=HTTP_201_CREATED,
    )


@router.get(
    "/comments/{comment_id}",
    response_class=ORJSONResponse,
    response_model=ApiResponse[CommentResponse],
    summary="Get comment by ID",
    responses=ERROR_RESPONSES,
    operation_id="comments_get_by_id",
)
@limiter.limit(READ_LIMIT)
async def get_comment(
    request: Request,
    response: Response,
    comment_id: str,
    repo: RepoDep,
) -> ApiResponse[CommentResponse]:
    comment = await repo.get_comment(comment_id)
    return ApiResponse(data=comment_to_response(comment), message="Comment retrieved successfully")


@router.put(
    "/comments/{comment_id}",
    response_class=ORJSONResponse,
    response_model=ApiResponse[CommentResponse],
    summary="Update a comment",
    responses=ERROR_RESPONSES,
    operation_id="comments_update",
)
@limiter.limit(WRITE_LIMIT)
async def update_comment(
    request: Request,
    response: Response,
    comment_id: str,
    comment: CommentUpdate,
    repo: RepoDep,
) -> ApiResponse[CommentResponse]:
    """Update the content and/or author of a comment."""
    db_comment = await repo.update_comment(comment_id, comment)
    return ApiResponse(data=comment_to_response(db_comment), message="Comment updated successfully")


@router.delete(
    "/comments/{comment_id}",
    response_class=ORJSONResponse,
    response_model=ApiResponse[None],
    summary="Delete a comment",
    responses=ERROR_RESPONSES,
    operation_id="comments_delete",
)
@limiter.limit(WRITE_LIMIT)
async def delete_comment(
    request: Request,
    response: Response,
    comment_id: str,
    repo: RepoDep,
) -> ApiResponse[None]:
    await repo.delete_comment(comment_id)
    return ApiResponse(data=None, message="Comment deleted successfully")
