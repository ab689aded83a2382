"""Data access for comments. Every insert/delete adjusts posts.comments_count in the same transaction."""

import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.database import transaction
from unity.core.errors import NotFoundError, StorageError, UnauthorizedError, ValidationError
from unity.models import Comment, Post
from unity.schemas.comment import COMMENT_MAX_LENGTH

logger = logging.getLogger(__name__)


def _bump_comments_count(db: Session, post_id: int, delta: int) -> None:
    db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(comments_count=Post.comments_count + delta)
        .execution_options(synchronize_session=False)
    )


def create_comment(db: Session, post_id: int, user_id: int, content: str) -> Comment:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment cannot be empty")
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters")
    with transaction(db, "Failed to create comment"):
        if db.get(Post, post_id) is None:
            raise NotFoundError("Post not found")
        comment = Comment(post_id=post_id, user_id=user_id, content=text)
        db.add(comment)
        _bump_comments_count(db, post_id, 1)
    db.refresh(comment)
    return comment


def list_comments_for_post(db: Session, post_id: int) -> list[Comment]:
    """Oldest first. Raises NotFoundError for an unknown post."""
    try:
        if db.get(Post, post_id) is None:
            raise NotFoundError("Post not found")
        return (
            db.query(Comment)
            .filter(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to list comments for post %s", post_id)
        raise StorageError("Failed to load comments") from e


def list_comments_admin(db: Session) -> list[Comment]:
    """All comments, newest first."""
    try:
        return db.query(Comment).order_by(Comment.created_at.desc(), Comment.id.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Failed to list comments for admin")
        raise StorageError("Failed to load comments") from e


def delete_own_comment(db: Session, comment_id: int, user_id: int) -> None:
    """Only the author may delete through this path."""
    with transaction(db, "Failed to delete comment"):
        comment = db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.user_id != user_id:
            raise UnauthorizedError("You can only delete your own comments")
        post_id = comment.post_id
        db.delete(comment)
        _bump_comments_count(db, post_id, -1)


def delete_comment_admin(db: Session, comment_id: int) -> None:
    with transaction(db, "Failed to delete comment"):
        comment = db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        post_id = comment.post_id
        db.delete(comment)
        _bump_comments_count(db, post_id, -1)
    logger.info("Admin deleted comment id=%s on post id=%s", comment_id, post_id)
