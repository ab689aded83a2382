"""Schemas for comments."""

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from unity.schemas.user import UserPublic

if TYPE_CHECKING:
    from unity.models import Comment

COMMENT_MAX_LENGTH = 2_000


class CommentCreate(BaseModel):
    content: str = Field(..., description="Comment text")


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    user_id: int
    content: str
    created_at: datetime | None = None
    user: UserPublic | None = None


class CommentCreatedResponse(BaseModel):
    message: str
    post_id: int
    comment: CommentOut


def comment_to_out(comment: "Comment") -> CommentOut:
    """Serialize a Comment row with its author embedded as `user`."""
    author = comment.author
    return CommentOut(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        content=comment.content,
        created_at=comment.created_at,
        user=UserPublic.model_validate(author) if author is not None else None,
    )
