"""JSON login, registration and logout. Tokens are returned in the body and set as a cookie."""

from fastapi import APIRouter, Response, status

from unity.api.deps import (
    AppSettings,
    AuthenticatedUser,
    DbSession,
    Tokens,
    clear_auth_cookie,
    set_auth_cookie,
)
from unity.repositories import users as users_repo
from unity.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserSummary,
)
from unity.services import accounts

router = APIRouter()


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
def login(
    body: LoginRequest,
    response: Response,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> AuthResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    result = accounts.authenticate(db, tokens, body.username, body.password)
    set_auth_cookie(response, result.token, settings)
    return AuthResponse(token=result.token, user=UserSummary.model_validate(result.user))


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    response: Response,
    db: DbSession,
    tokens: Tokens,
    settings: AppSettings,
) -> AuthResponse:
    """Create an account with role 'user' and log it in immediately."""
    result = accounts.register(
        db,
        tokens,
        body.username,
        body.password,
        display_name=body.display_name,
        rounds=settings.BCRYPT_ROUNDS,
    )
    set_auth_cookie(response, result.token, settings)
    return AuthResponse(
        message="User created",
        token=result.token,
        user=UserSummary.model_validate(result.user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, settings: AppSettings) -> MessageResponse:
    clear_auth_cookie(response, settings)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
def me(current_user: AuthenticatedUser, db: DbSession) -> MeResponse:
    """Identity attached to this request. id is null if the account was deleted."""
    created_at = None
    if current_user.id is not None:
        user = users_repo.get_user_by_id(db, current_user.id)
        created_at = user.created_at if user is not None else None
    return MeResponse(
        id=current_user.id,
        username=current_user.username,
        role=current_user.role,
        display_name=current_user.display_name,
        created_at=created_at,
    )
