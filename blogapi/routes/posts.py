"""
Post Routes.

Provides CRUD endpoints, listing and search for blog posts.

Summary
-------
Endpoints include:
  - List posts (paginated, optional status/author filters)
  - Search posts by title or content
  - Get post by id
  - Create post
  - Update post
  - Publish / unpublish post
  - Delete post together with its comments

Pagination
----------
``page`` and ``limit`` are read as raw strings and clamped by the
repository, so malformed values degrade to defaults instead of failing.

Rate Limiting
-------------
Reads and writes carry separate limits; clients identified by ``X-API-Key``
are tracked per key instead of per IP.
"""

from logging import getLogger
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import ORJSONResponse
from starlette.responses import Response
from starlette.status import HTTP_201_CREATED

from blogapi.dependencies import RepoDep
from blogapi.managers.rate_limiter import READ_LIMIT, WRITE_LIMIT, limiter
from blogapi.models.post import PostDB
from blogapi.schemas import (
    ApiResponse,
    DeletePostResponse,
    PageResponse,
    PaginationMeta,
    PostCreate,
    PostResponse,
    PostUpdate,
)
from blogapi.utils.helpers import file_logger, iso_datetime, make_excerpt
from blogapi.utils.pagination import Page

router = APIRouter(prefix="/api/posts", tags=["📝 Posts"])

logger = file_logger(getLogger(__name__))

PageQuery = Annotated[str | None, Query(description="Page number (1-based)")]
LimitQuery = Annotated[str | None, Query(description="Items per page (1-100)")]
StatusQuery = Annotated[str | None, Query(description="Optional status filter")]

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {
        "description": "Invalid input or ID",
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "data": None,
                    "message": "Invalid post ID format: abc",
                    "statusCode": 400,
                    "kind": "invalid_id",
                },
            },
        },
    },
    404: {
        "description": "Post not found",
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "data": None,
                    "message": "Post with ID <uuid> not found",
                    "statusCode": 404,
                    "kind": "not_found",
                },
            },
        },
    },
    429: {
        "description": "Rate limit exceeded",
        "content": {
            "application/json": {
                "example": {"success": False, "message": "Too many requests", "statusCode": 429},
            },
        },
    },
}


def post_to_response(post: PostDB) -> PostResponse:
    """
    Convert a `PostDB` instance to `PostResponse`.

    Parameters
    ----------
    post : PostDB
        Database post entity.

    Returns
    -------
    PostResponse
        Response model with ISO timestamps and the derived excerpt.
    """
    return PostResponse(
        id=str(post.id),
        title=post.title,
        content=post.content,
        excerpt=make_excerpt(post.content),
        author=post.author,
        status=post.status,  # type: ignore[arg-type]
        is_published=post.is_published,
        created_at=iso_datetime(post.created_at),
        updated_at=iso_datetime(post.updated_at),
    )


def page_to_response(page: Page[PostDB]) -> PageResponse[PostResponse]:
    return PageResponse[PostResponse](
        items=[post_to_response(post) for post in page.items],
        pagination=PaginationMeta.from_page(page),
    )


@router.get(
    "",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PageResponse[PostResponse]],
    summary="List posts",
    description="List posts newest first. Malformed pagination values fall back to defaults.",
    responses={429: ERROR_RESPONSES[429]},
    operation_id="posts_list",
)
@limiter.limit(READ_LIMIT)
async def list_posts(
    request: Request,
    response: Response,
    repo: RepoDep,
    page: PageQuery = None,
    limit: LimitQuery = None,
    status: StatusQuery = None,
    author: Annotated[str | None, Query(description="Optional author filter")] = None,
) -> ApiResponse[PageResponse[PostResponse]]:
    """
    List posts with pagination.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter headers.
    repo : BlogRepository
        Repository dependency.
    page, limit : str | None
        Raw pagination values.
    status, author : str | None
        Optional filters.

    Returns
    -------
    ApiResponse[PageResponse[PostResponse]]
        Posts of the page with pagination metadata.
    """
    result = await repo.list_posts(page, limit, status=status, author=author)
    logger.info(f"Posts retrieved: page={result.page} limit={result.limit} total={result.total}")
    return ApiResponse(data=page_to_response(result), message="Posts retrieved successfully")


@router.get(
    "/search",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PageResponse[PostResponse]],
    summary="Search posts",
    description="Case-insensitive search over post titles and content.",
    responses={429: ERROR_RESPONSES[429]},
    operation_id="posts_search",
)
@limiter.limit(READ_LIMIT)
async def search_posts(
    request: Request,
    response: Response,
    repo: RepoDep,
    q: Annotated[str | None, Query(description="Search term")] = None,
    page: PageQuery = None,
    limit: LimitQuery = None,
    status: StatusQuery = None,
) -> ApiResponse[PageResponse[PostResponse]]:
    """Search posts by title or content."""
    result = await repo.search_posts(q, page, limit, status=status)
    return ApiResponse(data=page_to_response(result), message="Posts retrieved successfully")


@router.get(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PostResponse],
    summary="Get post by ID",
    responses={400: ERROR_RESPONSES[400], 404: ERROR_RESPONSES[404], 429: ERROR_RESPONSES[429]},
    operation_id="posts_get_by_id",
)
@limiter.limit(READ_LIMIT)
async def get_post(
    request: Request,
    response: Response,
    post_id: str,
    repo: RepoDep,
) -> ApiResponse[PostResponse]:
    """
    Get a post by ID.

    Raises
    ------
    InvalidIdError
        If the ID is not a UUID (400).
    RecordNotFoundError
        If the post does not exist (404).
    """
    post = await repo.get_post(post_id)
    return ApiResponse(data=post_to_response(post), message="Post retrieved successfully")


@router.post(
    "",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PostResponse],
    status_code=HTTP_201_CREATED,
    summary="Create a new post",
    description="Create a post. Status defaults to draft.",
    responses={400: ERROR_RESPONSES[400], 429: ERROR_RESPONSES[429]},
    operation_id="posts_create",
)
@limiter.limit(WRITE_LIMIT)
async def create_post(
    request: Request,
    response: Response,
    post: Annotated[
        PostCreate,
        Body(
            examples=[
                {"title": "Hello World", "content": "My first post.", "author": "Ann"},
            ],
        ),
    ],
    repo: RepoDep,
) -> ApiResponse[PostResponse]:
    """
    Create a new post.

    Parameters
    ----------
    request : Request
        Current request context.
    response : Response
        Response object for the rate limiter headers.
    post : PostCreate
        Post input payload.
    repo : BlogRepository
        Repository dependency.

    Returns
    -------
    ApiResponse[PostResponse]
        Created post.
    """
    db_post = await repo.create_post(post)
    return ApiResponse(
        data=post_to_response(db_post),
        message="Post created successfully",
        status_code=HTTP_201_CREATED,
    )


@router.put(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PostResponse],
    summary="Update a post",
    description="Replace the supplied fields of a post.",
    responses=ERROR_RESPONSES,
    operation_id="posts_update",
)
@limiter.limit(WRITE_LIMIT)
async def update_post(
    request: Request,
    response: Response,
    post_id: str,
    post: PostUpdate,
    repo: RepoDep,
) -> ApiResponse[PostResponse]:
    """Update a post; only supplied fields change."""
    db_post = await repo.update_post(post_id, post)
    return ApiResponse(data=post_to_response(db_post), message="Post updated successfully")


@router.patch(
    "/{post_id}/publish",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PostResponse],
    summary="Publish a post",
    responses=ERROR_RESPONSES,
    operation_id="posts_publish",
)
@limiter.limit(WRITE_LIMIT)
async def publish_post(
    request: Request,
    response: Response,
    post_id: str,
    repo: RepoDep,
) -> ApiResponse[PostResponse]:
    db_post = await repo.publish_post(post_id)
    return ApiResponse(data=post_to_response(db_post), message="Post published successfully")


@router.patch(
    "/{post_id}/unpublish",
    response_class=ORJSONResponse,
    response_model=ApiResponse[PostResponse],
    summary="Move a post back to draft",
    responses=ERROR_RESPONSES,
    operation_id="posts_unpublish",
)
@limiter.limit(WRITE_LIMIT)
async def unpublish_post(
    request: Request,
    response: Response,
    post_id: str,
    repo: RepoDep,
) -> ApiResponse[PostResponse]:
    db_post = await repo.unpublish_post(post_id)
    return ApiResponse(data=post_to_response(db_post), message="Post unpublished successfully")


@router.delete(
    "/{post_id}",
    response_class=ORJSONResponse,
    response_model=ApiResponse[DeletePostResponse],
    summary="Delete a post and its comments",
    description="Deletes the post and all of its comments in one transaction.",
    responses=ERROR_RESPONSES,
    operation_id="posts_delete",
)
@limiter.limit(WRITE_LIMIT)
async def delete_post(
    request: Request,
    response: Response,
    post_id: str,
    repo: RepoDep,
) -> ApiResponse[DeletePostResponse]:
    """
    Delete a post and all of its comments.

    Returns
    -------
    ApiResponse[DeletePostResponse]
        Number of comments deleted with the post.
    """
    result = await repo.delete_post(post_id)
    return ApiResponse(
        data=DeletePostResponse(deleted_comment_count=result.deleted_comment_count),
        message="Post and associated comments deleted successfully",
    )
