"""SQLAlchemy models."""

from feedboard.models.post import Post
from feedboard.models.user import User

__all__ = [
    "User",
    "Post",
]
