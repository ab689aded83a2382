"""
Auth dependencies: resolve the caller's identity once per request.

Three modes, composed per route:
  get_current_user   mandatory; rejects with 401 (API) or a login redirect (browser)
  get_optional_user  anonymous callers get None; never rejects
  require_admin      runs after get_current_user; role must be exactly 'admin' or 403

Handlers only ever receive a CurrentUser (or None); they never look at tokens.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unity.core.config import Settings
from unity.core.database import get_db
from unity.core.errors import (
    LoginRequiredError,
    ServiceUnavailableError,
    TokenError,
    UnauthenticatedError,
    UnauthorizedError,
)
from unity.core.security import TokenClaims, TokenService
from unity.repositories import users as users_repo
from unity.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
JSON_MEDIA_TYPE = "application/json"
API_PATH_PREFIX = "/api/"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    """The TokenService built by create_app. Without one, authentication fails closed."""
    tokens = getattr(request.app.state, "tokens", None)
    if tokens is None:
        logger.error("Request received before the token service was initialized")
        raise ServiceUnavailableError("Authentication is not available")
    return tokens


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Authorization header first, then the session cookie; a 'Bearer ' prefix is stripped."""
    token = request.headers.get("Authorization") or request.cookies.get(cookie_name) or ""
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    token = token.strip()
    return token or None


def is_api_request(request: Request) -> bool:
    """API callers get JSON errors; everything else is treated as a browser and redirected."""
    return (
        JSON_MEDIA_TYPE in request.headers.get("Content-Type", "")
        or JSON_MEDIA_TYPE in request.headers.get("Accept", "")
        or request.url.path.startswith(API_PATH_PREFIX)
    )


def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _resolve_identity(db: Session, claims: TokenClaims) -> CurrentUser:
    """
    Map verified claims to a user record.

    A token whose account is gone still authenticates, limited to the username and role
    it carries and with id=None. That includes a username that was deleted and then
    registered again: the new account has a different id than the token's subject.
    """
    try:
        user = users_repo.get_user_by_username(db, claims.username)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not load user %s; continuing with token identity", claims.username)
        user = None
    else:
        if user is None:
            logger.warning("Token user %s not found; continuing with token identity", claims.username)
        elif claims.user_id is not None and user.id != claims.user_id:
            logger.warning(
                "Token for %s was issued to user id=%s, now held by id=%s; continuing with token identity",
                claims.username,
                claims.user_id,
                user.id,
            )
            user = None
    if user is None:
        return CurrentUser(id=None, username=claims.username, role=claims.role)
    return CurrentUser(
        id=user.id,
        username=user.username,
        role=claims.role,
        display_name=user.display_name,
    )


def get_current_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """Dependency: require a valid token. Raises LoginRequiredError if missing or invalid."""
    redirect_to = None if is_api_request(request) else settings.LOGIN_PATH
    token = extract_token(request, settings.AUTH_COOKIE_NAME)
    if token is None:
        raise LoginRequiredError("Authentication required", redirect_to=redirect_to)
    try:
        claims = tokens.verify(token)
    except TokenError as e:
        logger.info("Rejected token on %s: %s", request.url.path, type(e).__name__)
        raise LoginRequiredError(
            "Invalid or expired token",
            redirect_to=redirect_to,
            clear_cookie=True,
        ) from e
    return _resolve_identity(db, claims)


def get_optional_user(
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser | None:
    """Dependency: identity if a valid token is present, else None. An invalid cookie is cleared."""
    token = extract_token(request, settings.AUTH_COOKIE_NAME)
    if token is None:
        return None
    try:
        claims = tokens.verify(token)
    except TokenError as e:
        logger.info("Ignoring invalid token on %s: %s", request.url.path, type(e).__name__)
        clear_auth_cookie(response, settings)
        return None
    return _resolve_identity(db, claims)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for anyone else."""
    if not current_user.is_admin:
        raise UnauthorizedError("Admin access required")
    return current_user


def require_account_id(current_user: CurrentUser) -> int:
    """User id for write operations; a token whose account is gone cannot act."""
    if current_user.id is None:
        raise UnauthenticatedError("Account is no longer available")
    return current_user.id


DbSession = Annotated[Session, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Tokens = Annotated[TokenService, Depends(get_token_service)]
AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]
OptionalUser = Annotated[CurrentUser | None, Depends(get_optional_user)]
AdminUser = Annotated[CurrentUser, Depends(require_admin)]
