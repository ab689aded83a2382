"""
Like toggle: flips a user's like on a post and keeps posts.likes in step.

One transaction per attempt. The post row is locked first (SELECT ... FOR UPDATE), so
toggles on the same post queue behind each other; the existence check, the relation
insert/delete and the relative counter update all happen under that lock. If the store
does not honour the lock and two toggles by the same user race to insert, the loser hits
the (post_id, user_id) unique constraint, rolls back and runs the whole toggle again,
now seeing the winner's row. Likewise a delete that finds no row means another toggle
removed it first; that attempt is rolled back and retried instead of decrementing.
"""

import logging

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.errors import NotFoundError, StorageError
from unity.models import Post, PostLike

logger = logging.getLogger(__name__)

MAX_TOGGLE_ATTEMPTS = 3


class _LostRace(Exception):
    """Another toggle removed the like between our check and our delete."""


def _toggle_once(db: Session, post_id: int, user_id: int) -> bool:
    locked = db.execute(
        select(Post.id).where(Post.id == post_id).with_for_update()
    ).scalar_one_or_none()
    if locked is None:
        raise NotFoundError("Post not found")

    exists = db.execute(
        select(PostLike.id).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    ).first() is not None

    if exists:
        removed = db.execute(
            delete(PostLike)
            .where(PostLike.post_id == post_id, PostLike.user_id == user_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        if removed == 0:
            raise _LostRace()
        delta = -1
    else:
        db.execute(insert(PostLike).values(post_id=post_id, user_id=user_id))
        delta = 1
    db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(likes=Post.likes + delta)
        .execution_options(synchronize_session=False)
    )
    return not exists


def toggle_like(db: Session, post_id: int, user_id: int) -> bool:
    """
    Like the post if the user has not liked it yet, otherwise remove the like.

    Returns the new state (True = liked). Raises NotFoundError for a missing post and
    StorageError when the transaction fails; in both cases nothing is changed.
    """
    for attempt in range(1, MAX_TOGGLE_ATTEMPTS + 1):
        try:
            liked = _toggle_once(db, post_id, user_id)
            db.commit()
        except (IntegrityError, _LostRace):
            db.rollback()
            logger.info(
                "Like toggle conflict post_id=%s user_id=%s attempt=%s; retrying",
                post_id,
                user_id,
                attempt,
            )
            continue
        except NotFoundError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Like toggle failed post_id=%s user_id=%s", post_id, user_id)
            raise StorageError("Failed to update like") from e
        logger.debug("Like toggled post_id=%s user_id=%s liked=%s", post_id, user_id, liked)
        return liked

    logger.error(
        "Like toggle gave up after %s conflicts post_id=%s user_id=%s",
        MAX_TOGGLE_ATTEMPTS,
        post_id,
        user_id,
    )
    raise StorageError("Failed to update like")


def get_like_count(db: Session, post_id: int) -> int:
    likes = db.execute(select(Post.likes).where(Post.id == post_id)).scalar_one_or_none()
    if likes is None:
        raise NotFoundError("Post not found")
    return likes


def is_liked(db: Session, post_id: int, user_id: int) -> bool:
    return db.execute(
        select(PostLike.id).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    ).first() is not None


def liked_post_ids(db: Session, user_id: int, post_ids: list[int]) -> set[int]:
    """Subset of post_ids the user currently likes."""
    if not post_ids:
        return set()
    rows = db.execute(
        select(PostLike.post_id).where(
            PostLike.user_id == user_id, PostLike.post_id.in_(post_ids)
        )
    )
    return {row[0] for row in rows}
