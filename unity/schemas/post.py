"""Schemas for posts and like toggles."""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from unity.schemas.comment import CommentOut
from unity.schemas.user import UserPublic

if TYPE_CHECKING:
    from unity.models import Post

CONTENT_MAX_LENGTH = 5_000


class PostCreate(BaseModel):
    content: str = Field(..., description="Post text")


class AdminPostCreate(BaseModel):
    """Admin may post on behalf of any user and override the slogan."""

    user_id: int
    content: str
    slogan: str | None = None


class PostUpdate(BaseModel):
    content: str


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    content: str
    slogan: str
    likes: int
    comments_count: int
    created_at: datetime | None = None
    user: UserPublic | None = None
    liked_by_me: bool | None = None


class PostDetail(BaseModel):
    """Single post with its comments, oldest comment first."""

    post: PostOut
    comments: list[CommentOut]


class LikeResponse(BaseModel):
    message: str
    liked: bool
    likes: int


def post_to_out(post: "Post", liked_by_me: bool | None = None) -> PostOut:
    """Serialize a Post row with its author embedded as `user`."""
    author = post.author
    return PostOut(
        id=post.id,
        user_id=post.user_id,
        content=post.content,
        slogan=post.slogan,
        likes=post.likes or 0,
        comments_count=post.comments_count or 0,
        created_at=post.created_at,
        user=UserPublic.model_validate(author) if author is not None else None,
        liked_by_me=liked_by_me,
    )
