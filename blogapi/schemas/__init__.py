from blogapi.schemas.comment import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    validate_comment_create,
    validate_comment_update,
)
from blogapi.schemas.common import (
    ApiResponse,
    DeletePostResponse,
    PageResponse,
    PaginationMeta,
    validate_model,
)
from blogapi.schemas.post import (
    PostCreate,
    PostResponse,
    PostStatus,
    PostUpdate,
    validate_post_create,
    validate_post_update,
)

__all__ = [
    "ApiResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentUpdate",
    "DeletePostResponse",
    "PageResponse",
    "PaginationMeta",
    "PostCreate",
    "PostResponse",
    "PostStatus",
    "PostUpdate",
    "validate_comment_create",
    "validate_comment_update",
    "validate_model",
    "validate_post_create",
    "validate_post_update",
]
