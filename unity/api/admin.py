"""
Admin moderation surface. Every route requires an authenticated admin (router-level dependency).

Users: list, change role, delete with cascade. Posts: list, create on behalf of a user,
edit content, delete with cascade. Comments: list, delete. Heroes: full CRUD.
"""

import logging

from fastapi import APIRouter, Depends, status

from unity.api.deps import AdminUser, AppSettings, DbSession, require_admin
from unity.core.errors import NotFoundError, ValidationError
from unity.repositories import comments as comments_repo
from unity.repositories import heroes as heroes_repo
from unity.repositories import posts as posts_repo
from unity.repositories import stats as stats_repo
from unity.repositories import users as users_repo
from unity.schemas.admin import DashboardResponse, Stats
from unity.schemas.auth import MessageResponse
from unity.schemas.comment import CommentOut, comment_to_out
from unity.schemas.hero import HeroIn, HeroOut
from unity.schemas.post import AdminPostCreate, PostOut, PostUpdate, post_to_out
from unity.schemas.user import RoleUpdateRequest, UserPublic, UsersListResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/", response_model=DashboardResponse)
def dashboard(db: DbSession) -> DashboardResponse:
    return DashboardResponse(
        stats=Stats(**stats_repo.get_stats(db)),
        message="Welcome to the admin panel",
    )


# --- users ---


@router.get("/users", response_model=UsersListResponse)
def list_users(db: DbSession) -> UsersListResponse:
    return UsersListResponse(
        users=[UserPublic.model_validate(u) for u in users_repo.list_users(db)]
    )


@router.put("/users/{user_id}/role", response_model=UserPublic)
def update_user_role(
    user_id: int,
    body: RoleUpdateRequest,
    admin: AdminUser,
    db: DbSession,
) -> UserPublic:
    user = users_repo.update_user_role(db, user_id, body.role)
    logger.info("Admin %s set role of user id=%s to %s", admin.username, user_id, body.role)
    return UserPublic.model_validate(user)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: int, admin: AdminUser, db: DbSession) -> MessageResponse:
    """Delete a user together with their likes, comments and posts."""
    if admin.id is not None and admin.id == user_id:
        raise ValidationError("Admins cannot delete their own account")
    users_repo.delete_user_cascade(db, user_id)
    return MessageResponse(message="User deleted")


# --- posts ---


@router.get("/posts", response_model=list[PostOut])
def list_posts(db: DbSession, settings: AppSettings) -> list[PostOut]:
    return [post_to_out(p) for p in posts_repo.list_posts_admin(db, settings.ADMIN_POSTS_LIMIT)]


@router.post("/posts", response_model=PostOut, status_code=status.HTTP_201_CREATED)
def create_post(body: AdminPostCreate, db: DbSession, settings: AppSettings) -> PostOut:
    """Post on behalf of any user. Slogan defaults to the server slogan."""
    slogan = (body.slogan or "").strip() or settings.POST_SLOGAN
    post = posts_repo.create_post(db, body.user_id, body.content, slogan)
    return post_to_out(post)


@router.put("/posts/{post_id}", response_model=PostOut)
def update_post(post_id: int, body: PostUpdate, db: DbSession) -> PostOut:
    return post_to_out(posts_repo.update_post_content(db, post_id, body.content))


@router.delete("/posts/{post_id}", response_model=MessageResponse)
def delete_post(post_id: int, db: DbSession) -> MessageResponse:
    posts_repo.delete_post_cascade(db, post_id)
    return MessageResponse(message="Post deleted")


# --- comments ---


@router.get("/comments", response_model=list[CommentOut])
def list_comments(db: DbSession) -> list[CommentOut]:
    return [comment_to_out(c) for c in comments_repo.list_comments_admin(db)]


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
def delete_comment(comment_id: int, db: DbSession) -> MessageResponse:
    comments_repo.delete_comment_admin(db, comment_id)
    return MessageResponse(message="Comment deleted")


# --- heroes ---


@router.get("/heroes", response_model=list[HeroOut])
def list_heroes(db: DbSession) -> list[HeroOut]:
    return [HeroOut.model_validate(h) for h in heroes_repo.list_heroes(db)]


@router.get("/heroes/{hero_id}", response_model=HeroOut)
def get_hero(hero_id: int, db: DbSession) -> HeroOut:
    hero = heroes_repo.get_hero(db, hero_id)
    if hero is None:
        raise NotFoundError("Hero not found")
    return HeroOut.model_validate(hero)


@router.post("/heroes", response_model=HeroOut, status_code=status.HTTP_201_CREATED)
def create_hero(body: HeroIn, db: DbSession) -> HeroOut:
    hero = heroes_repo.create_hero(
        db,
        name=body.name,
        description=body.description,
        image_url=body.image_url,
        birth_date=body.birth_date,
    )
    return HeroOut.model_validate(hero)


@router.put("/heroes/{hero_id}", response_model=HeroOut)
def update_hero(hero_id: int, body: HeroIn, db: DbSession) -> HeroOut:
    hero = heroes_repo.update_hero(
        db,
        hero_id,
        name=body.name,
        description=body.description,
        image_url=body.image_url,
        birth_date=body.birth_date,
    )
    return HeroOut.model_validate(hero)


@router.delete("/heroes/{hero_id}", response_model=MessageResponse)
def delete_hero(hero_id: int, db: DbSession) -> MessageResponse:
    heroes_repo.delete_hero(db, hero_id)
    return MessageResponse(message="Hero deleted")
