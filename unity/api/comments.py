"""Comment deletion by its author."""

from fastapi import APIRouter

from unity.api.deps import AuthenticatedUser, DbSession, require_account_id
from unity.repositories import comments as comments_repo
from unity.schemas.auth import MessageResponse

router = APIRouter()


@router.delete("/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: int,
    current_user: AuthenticatedUser,
    db: DbSession,
) -> MessageResponse:
    """Only the comment's author may delete it here; admins use /admin/comments."""
    user_id = require_account_id(current_user)
    comments_repo.delete_own_comment(db, comment_id, user_id)
    return MessageResponse(message="Comment deleted")
