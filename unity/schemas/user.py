"""Schemas for user listings and admin role changes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserPublic(BaseModel):
    """User as embedded in posts and comments (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str
    role: str
    created_at: datetime | None = None


class UsersListResponse(BaseModel):
    users: list[UserPublic]


class RoleUpdateRequest(BaseModel):
    role: str = Field(..., description="One of: user, moderator, admin")
