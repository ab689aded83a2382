"""Request/response schemas for auth endpoints and the per-request identity."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from unity.models.user import ROLE_ADMIN

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 3
PASSWORD_MAX_LEN = 72
DISPLAY_NAME_MAX_LEN = 100


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")


class RegisterRequest(BaseModel):
    """New account. display_name defaults to the username."""

    username: str = Field(..., description="Unique username")
    password: str = Field(..., description="Password")
    display_name: str | None = Field(default=None, description="Name shown on posts")


class UserSummary(BaseModel):
    """User fields returned alongside a token."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str


class AuthResponse(BaseModel):
    """Token plus user summary returned by login and register."""

    token: str = Field(..., description="JWT access token; send as Authorization: Bearer <token>")
    user: UserSummary
    message: str | None = None


class MessageResponse(BaseModel):
    message: str


class CurrentUser(BaseModel):
    """
    Authenticated identity attached to a request by the auth dependencies.

    id is None when the token verified but its username no longer resolves to a user
    (e.g. the account was deleted after the token was issued). Anonymous callers are
    represented by None instead of a CurrentUser.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None
    username: str
    role: str
    display_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class MeResponse(BaseModel):
    id: int | None
    username: str
    role: str
    display_name: str | None = None
    created_at: datetime | None = None
