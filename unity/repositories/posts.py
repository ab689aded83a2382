"""Data access for posts."""

import logging

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.database import transaction
from unity.core.errors import NotFoundError, StorageError, ValidationError
from unity.models import Comment, Post, PostLike, User
from unity.schemas.post import CONTENT_MAX_LENGTH

logger = logging.getLogger(__name__)


def _clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Post content cannot be empty")
    if len(text) > CONTENT_MAX_LENGTH:
        raise ValidationError(f"Post content must be at most {CONTENT_MAX_LENGTH} characters")
    return text


def create_post(db: Session, user_id: int, content: str, slogan: str) -> Post:
    """Insert a post with zeroed counters. The slogan is chosen by the caller, not the author."""
    text = _clean_content(content)
    with transaction(db, "Failed to create post"):
        if db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        post = Post(user_id=user_id, content=text, slogan=slogan, likes=0, comments_count=0)
        db.add(post)
    db.refresh(post)
    return post


def get_post(db: Session, post_id: int) -> Post | None:
    return db.get(Post, post_id)


def list_posts_with_authors(db: Session, limit: int, offset: int = 0) -> list[Post]:
    """Newest first, author eagerly loaded."""
    try:
        return (
            db.query(Post)
            .join(User, Post.user_id == User.id)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to list posts")
        raise StorageError("Failed to load posts") from e


def list_posts_admin(db: Session, limit: int) -> list[Post]:
    """Like list_posts_with_authors but keeps posts whose author row is missing (author=None)."""
    try:
        return (
            db.query(Post)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to list posts for admin")
        raise StorageError("Failed to load posts") from e


def update_post_content(db: Session, post_id: int, content: str) -> Post:
    text = _clean_content(content)
    with transaction(db, "Failed to update post"):
        post = db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")
        post.content = text
    db.refresh(post)
    return post


def delete_post_cascade(db: Session, post_id: int) -> None:
    """Delete a post with its likes and comments in one transaction."""
    with transaction(db, "Failed to delete post"):
        if db.get(Post, post_id) is None:
            raise NotFoundError("Post not found")
        db.execute(
            delete(PostLike)
            .where(PostLike.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        db.execute(
            delete(Comment)
            .where(Comment.post_id == post_id)
            .execution_options(synchronize_session=False)
        )
        db.execute(
            delete(Post)
            .where(Post.id == post_id)
            .execution_options(synchronize_session=False)
        )
    logger.info("Deleted post id=%s", post_id)
