"""SQLAlchemy ORM models."""

from unity.models.base import Base
from unity.models.comment import Comment
from unity.models.hero import Hero
from unity.models.post import Post, PostLike
from unity.models.user import User

__all__ = ["Base", "Comment", "Hero", "Post", "PostLike", "User"]
