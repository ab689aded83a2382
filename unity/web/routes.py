"""
Browser adapter: HTML form posts in, redirects out.

Same account and like operations as the JSON API; only the presentation differs. Errors
come back to the login page as a query parameter instead of a JSON body.
"""

from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import RedirectResponse

from unity.api.deps import (
    AppSettings,
    AuthenticatedUser,
    DbSession,
    Tokens,
    clear_auth_cookie,
    require_account_id,
    set_auth_cookie,
)
from unity.core.config import Settings
from unity.core.errors import ConflictError, UnauthenticatedError, ValidationError
from unity.services import accounts, likes

router = APIRouter()

HOME_PATH = "/"


def _back_to_login(settings: Settings, message: str) -> RedirectResponse:
    query = urlencode({"error": message})
    return RedirectResponse(f"{settings.LOGIN_PATH}?{query}", status_code=status.HTTP_303_SEE_OTHER)


def _safe_next(next_path: str | None) -> str:
    """Only same-site absolute paths are followed after login."""
    if next_path and next_path.startswith("/") and not next_path.startswith("//"):
        return next_path
    return HOME_PATH


@router.post("/login")
def login_form(
    username: Annotated[str, Form()],
    password: Annotated[str, Form()],
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
    next_path: Annotated[str | None, Form(alias="next")] = None,
) -> RedirectResponse:
    try:
        result = accounts.authenticate(db, tokens, username, password)
    except (UnauthenticatedError, ValidationError) as e:
        return _back_to_login(settings, e.message)
    response = RedirectResponse(_safe_next(next_path), status_code=status.HTTP_303_SEE_OTHER)
    set_auth_cookie(response, result.token, settings)
    return response


@router.post("/register")
def register_form(
    username: Annotated[str, Form()],
    password: Annotated[str, Form()],
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
    display_name: Annotated[str | None, Form()] = None,
) -> RedirectResponse:
    try:
        result = accounts.register(
            db,
            tokens,
            username,
            password,
            display_name=display_name,
            rounds=settings.BCRYPT_ROUNDS,
        )
    except (ConflictError, ValidationError) as e:
        return _back_to_login(settings, e.message)
    response = RedirectResponse(HOME_PATH, status_code=status.HTTP_303_SEE_OTHER)
    set_auth_cookie(response, result.token, settings)
    return response


@router.get("/logout")
def logout(settings: AppSettings) -> RedirectResponse:
    response = RedirectResponse(HOME_PATH, status_code=status.HTTP_302_FOUND)
    clear_auth_cookie(response, settings)
    return response


@router.post("/posts/{post_id}/like")
def like_form(
    post_id: int,
    request: Request,
    current_user: AuthenticatedUser,
    db: DbSession,
) -> RedirectResponse:
    """Toggle a like from a page and go back to where the click came from."""
    likes.toggle_like(db, post_id, require_account_id(current_user))
    referer = request.headers.get("Referer", "")
    target = HOME_PATH
    if referer.startswith(str(request.base_url)):
        target = "/" + referer[len(str(request.base_url)):]
    return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
