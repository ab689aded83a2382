"""Registration and login, shared by the JSON API and the browser form routes."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from unity.core.errors import UnauthenticatedError, ValidationError
from unity.core.security import BCRYPT_ROUNDS, TokenService, hash_password, verify_password
from unity.models import User
from unity.models.user import ROLE_USER
from unity.repositories import users as users_repo
from unity.schemas.auth import (
    DISPLAY_NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User


def _validate_username(username: str | None) -> str:
    name = (username or "").strip()
    if not (USERNAME_MIN_LEN <= len(name) <= USERNAME_MAX_LEN):
        raise ValidationError("Invalid username length.")
    return name


def _validate_password(password: str | None) -> str:
    if password is None or not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError("Invalid password length.")
    return password


def register(
    db: Session,
    tokens: TokenService,
    username: str | None,
    password: str | None,
    display_name: str | None = None,
    rounds: int = BCRYPT_ROUNDS,
) -> AuthResult:
    """Create a 'user' account and log it in. Raises ValidationError or ConflictError."""
    name = _validate_username(username)
    secret = _validate_password(password)
    shown = (display_name or "").strip() or None
    if shown is not None and len(shown) > DISPLAY_NAME_MAX_LEN:
        raise ValidationError("Invalid display name length.")

    user = users_repo.create_user(
        db,
        username=name,
        password_hash=hash_password(secret, rounds=rounds),
        role=ROLE_USER,
        display_name=shown,
    )
    logger.info("Registered user id=%s username=%s", user.id, user.username)
    token = tokens.issue(user.id, user.username, user.role)
    return AuthResult(token=token, user=user)


def authenticate(
    db: Session,
    tokens: TokenService,
    username: str | None,
    password: str | None,
) -> AuthResult:
    """
    Check credentials and issue a token.

    Unknown username and wrong password fail with the same message.
    """
    name = (username or "").strip()
    if not name or not password:
        raise ValidationError("Username and password are required")

    user = users_repo.get_user_by_username(db, name)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for username=%s", name)
        raise UnauthenticatedError(INVALID_CREDENTIALS)
    token = tokens.issue(user.id, user.username, user.role)
    logger.info("User id=%s logged in", user.id)
    return AuthResult(token=token, user=user)
