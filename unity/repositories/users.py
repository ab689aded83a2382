"""Data access for users, including the transactional account cascade."""

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.database import transaction
from unity.core.errors import ConflictError, NotFoundError, StorageError, ValidationError
from unity.models import Comment, Post, PostLike, User
from unity.models.user import ROLE_USER, ROLES

logger = logging.getLogger(__name__)


def create_user(
    db: Session,
    username: str,
    password_hash: str,
    role: str = ROLE_USER,
    display_name: str | None = None,
) -> User:
    """Insert a user. Raises ConflictError if the username is taken."""
    if role not in ROLES:
        raise ValidationError(f"Unknown role {role!r}")
    existing = db.query(User.id).filter(User.username == username).first()
    if existing is not None:
        raise ConflictError("User already exists")
    user = User(
        username=username,
        display_name=display_name or username,
        password_hash=password_hash,
        role=role,
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same name.
        db.rollback()
        raise ConflictError("User already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to create user %s", username)
        raise StorageError("Failed to create user") from e
    db.refresh(user)
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def update_user_role(db: Session, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(sorted(ROLES))}")
    with transaction(db, "Failed to update role"):
        user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        user.role = role
    db.refresh(user)
    return user


def delete_user_cascade(db: Session, user_id: int) -> None:
    """
    Delete a user and everything that references them, in one transaction.

    Order: counters on other users' posts are decremented for the likes and comments this
    user leaves behind, then likes, comments, rows hanging off the user's own posts, the
    posts, and finally the user. A failure at any step rolls the whole cascade back.
    """
    with transaction(db, "Failed to delete user"):
        if db.get(User, user_id) is None:
            raise NotFoundError("User not found")

        own_posts = select(Post.id).where(Post.user_id == user_id)

        likes_by_user = (
            select(func.count(PostLike.id))
            .where(PostLike.post_id == Post.id, PostLike.user_id == user_id)
            .scalar_subquery()
        )
        db.execute(
            update(Post)
            .where(Post.id.in_(select(PostLike.post_id).where(PostLike.user_id == user_id)))
            .values(likes=Post.likes - likes_by_user)
            .execution_options(synchronize_session=False)
        )
        comments_by_user = (
            select(func.count(Comment.id))
            .where(Comment.post_id == Post.id, Comment.user_id == user_id)
            .scalar_subquery()
        )
        db.execute(
            update(Post)
            .where(Post.id.in_(select(Comment.post_id).where(Comment.user_id == user_id)))
            .values(comments_count=Post.comments_count - comments_by_user)
            .execution_options(synchronize_session=False)
        )

        likes_deleted = db.execute(
            delete(PostLike)
            .where((PostLike.user_id == user_id) | PostLike.post_id.in_(own_posts))
            .execution_options(synchronize_session=False)
        ).rowcount
        comments_deleted = db.execute(
            delete(Comment)
            .where((Comment.user_id == user_id) | Comment.post_id.in_(own_posts))
            .execution_options(synchronize_session=False)
        ).rowcount
        posts_deleted = db.execute(
            delete(Post)
            .where(Post.user_id == user_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        db.execute(
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
    db.expire_all()
    logger.info(
        "Deleted user id=%s with posts=%s comments=%s likes=%s",
        user_id,
        posts_deleted,
        comments_deleted,
        likes_deleted,
    )
