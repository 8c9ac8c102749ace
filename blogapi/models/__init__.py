"""Database models for the application."""

from blogapi.models.comment import CommentDB
from blogapi.models.post import POST_STATUSES, PostDB

__all__ = ["CommentDB", "POST_STATUSES", "PostDB"]
