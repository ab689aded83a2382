"""Public post feed, post creation, likes and per-post comments."""

from fastapi import APIRouter, Query, status

from unity.api.deps import (
    AppSettings,
    AuthenticatedUser,
    DbSession,
    OptionalUser,
    require_account_id,
)
from unity.core.errors import NotFoundError
from unity.repositories import comments as comments_repo
from unity.repositories import posts as posts_repo
from unity.schemas.comment import (
    CommentCreate,
    CommentCreatedResponse,
    CommentOut,
    comment_to_out,
)
from unity.schemas.post import LikeResponse, PostCreate, PostDetail, PostOut, post_to_out
from unity.services import likes

router = APIRouter()


@router.get("", response_model=list[PostOut])
def list_posts(
    db: DbSession,
    settings: AppSettings,
    current_user: OptionalUser,
    offset: int = Query(default=0, ge=0),
) -> list[PostOut]:
    """
    Newest posts with their author embedded as `user`.

    For a logged-in caller each post also says whether they liked it (`liked_by_me`).
    """
    posts = posts_repo.list_posts_with_authors(db, limit=settings.POSTS_PAGE_SIZE, offset=offset)
    liked: set[int] | None = None
    if current_user is not None and current_user.id is not None:
        liked = likes.liked_post_ids(db, current_user.id, [p.id for p in posts])
    return [
        post_to_out(p, liked_by_me=(p.id in liked) if liked is not None else None)
        for p in posts
    ]


@router.post("", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    current_user: AuthenticatedUser,
    db: DbSession,
    settings: AppSettings,
) -> PostOut:
    """Create a post. The slogan is always the server's; clients cannot set it."""
    user_id = require_account_id(current_user)
    post = posts_repo.create_post(db, user_id, body.content, settings.POST_SLOGAN)
    return post_to_out(post)


@router.get("/{post_id}", response_model=PostDetail)
def get_post(post_id: int, db: DbSession, current_user: OptionalUser) -> PostDetail:
    post = posts_repo.get_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    liked_by_me = None
    if current_user is not None and current_user.id is not None:
        liked_by_me = likes.is_liked(db, post_id, current_user.id)
    comments = comments_repo.list_comments_for_post(db, post_id)
    return PostDetail(
        post=post_to_out(post, liked_by_me=liked_by_me),
        comments=[comment_to_out(c) for c in comments],
    )


@router.post("/{post_id}/like", response_model=LikeResponse)
def like_post(post_id: int, current_user: AuthenticatedUser, db: DbSession) -> LikeResponse:
    """Toggle the caller's like on a post; returns the new state and like count."""
    user_id = require_account_id(current_user)
    liked = likes.toggle_like(db, post_id, user_id)
    return LikeResponse(
        message="Like added" if liked else "Like removed",
        liked=liked,
        likes=likes.get_like_count(db, post_id),
    )


@router.get("/{post_id}/comments", response_model=list[CommentOut])
def list_comments(
    post_id: int,
    _user: AuthenticatedUser,
    db: DbSession,
) -> list[CommentOut]:
    return [comment_to_out(c) for c in comments_repo.list_comments_for_post(db, post_id)]


@router.post(
    "/{post_id}/comments",
    response_model=CommentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    post_id: int,
    body: CommentCreate,
    current_user: AuthenticatedUser,
    db: DbSession,
) -> CommentCreatedResponse:
    user_id = require_account_id(current_user)
    comment = comments_repo.create_comment(db, post_id, user_id, body.content)
    return CommentCreatedResponse(
        message="Comment added",
        post_id=post_id,
        comment=comment_to_out(comment),
    )
