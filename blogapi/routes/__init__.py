from blogapi.routes.comments import comment_to_response
from blogapi.routes.comments import router as comments_router
from blogapi.routes.health import router as health_router
from blogapi.routes.posts import post_to_response
from blogapi.routes.posts import router as posts_router

__all__ = [
    "comment_to_response",
    "comments_router",
    "health_router",
    "post_to_response",
    "posts_router",
]
