"""Dashboard counters."""

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.errors import StorageError
from unity.models import Comment, Hero, Post, User


def get_stats(db: Session) -> dict[str, int]:
    """
    Count users, posts, comments and heroes.

    Each count is its own query; the four numbers are not taken from a single snapshot.
    """
    counts: dict[str, int] = {}
    for key, model in (("users", User), ("posts", Post), ("comments", Comment), ("heroes", Hero)):
        try:
            counts[key] = db.scalar(select(func.count()).select_from(model)) or 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count {key}") from e
    return counts
