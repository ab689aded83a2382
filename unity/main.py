"""FastAPI application entrypoint. No business logic; only wiring, error mapping and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from unity import __version__
from unity.api import admin, auth, comments, health, heroes, posts
from unity.api.deps import clear_auth_cookie
from unity.core.config import Settings, get_settings
from unity.core.errors import LoginRequiredError, UnauthenticatedError, UnityError
from unity.core.logging import configure_logging
from unity.core.security import TokenService
from unity.web import routes as web_routes

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def handle_unity_error(request: Request, exc: UnityError) -> Response:
    """Domain errors become {"error": message}; a browser that needs to log in is redirected."""
    settings: Settings = request.app.state.settings
    if isinstance(exc, LoginRequiredError) and exc.redirect_to:
        response: Response = RedirectResponse(exc.redirect_to, status_code=status.HTTP_302_FOUND)
    else:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
        response = _error(exc.status_code, exc.message, headers)
    if isinstance(exc, LoginRequiredError) and exc.clear_cookie:
        clear_auth_cookie(response, settings)
    return response


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> Response:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request"
    return _error(status.HTTP_400_BAD_REQUEST, message)


async def handle_storage_error(request: Request, exc: SQLAlchemyError) -> Response:
    logger.exception("Unhandled database error on %s %s", request.method, request.url.path)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")


async def handle_unexpected_error(request: Request, exc: Exception) -> Response:
    """Last-resort JSON body. The server re-raises and logs the traceback after this runs."""
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(settings: Settings | None = None, tokens: TokenService | None = None) -> FastAPI:
    """
    Build the application.

    The token service is created here, before the app is returned, so every routed
    request sees the same immutable signing configuration.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Unity API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.tokens = tokens or TokenService.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(UnityError, handle_unity_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(posts.router, prefix="/api/posts", tags=["posts"])
    app.include_router(comments.router, prefix="/api/comments", tags=["comments"])
    app.include_router(heroes.router, prefix="/api/heroes", tags=["heroes"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(web_routes.router, tags=["web"])

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Unity API", "slogan": settings.POST_SLOGAN}

    logger.info("Application configured (env=%s)", settings.APP_ENV)
    return app


app = create_app()
