"""Repository layer for database operations."""

from blogapi.repositories.base import BaseRepository, parse_id
from blogapi.repositories.blog import BlogRepository, DeleteResult
from blogapi.repositories.comment import CommentRepository
from blogapi.repositories.post import PostRepository

__all__ = [
    "BaseRepository",
    "BlogRepository",
    "CommentRepository",
    "DeleteResult",
    "PostRepository",
    "parse_id",
]
