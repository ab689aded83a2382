"""Domain error taxonomy. Each error carries the HTTP status it maps to and a client-safe message."""


class UnityError(Exception):
    """Base class for errors that cross the API boundary as {"error": message}."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(UnityError):
    """Malformed or missing input."""

    status_code = 400


class UnauthenticatedError(UnityError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class LoginRequiredError(UnauthenticatedError):
    """
    Raised by the mandatory auth dependency.

    redirect_to is set for browser callers (send them to the login page instead of a 401);
    clear_cookie is set when a stored token was rejected.
    """

    def __init__(
        self,
        message: str,
        *,
        redirect_to: str | None = None,
        clear_cookie: bool = False,
    ) -> None:
        super().__init__(message)
        self.redirect_to = redirect_to
        self.clear_cookie = clear_cookie


class TokenError(UnauthenticatedError):
    """Token could not be verified."""


class InvalidSignatureError(TokenError):
    """Token signature does not match the configured secret."""


class MalformedTokenError(TokenError):
    """Token cannot be decoded or lacks required claims."""


class TokenExpiredError(TokenError):
    """Token is past its expiry."""


class UnauthorizedError(UnityError):
    """Valid identity, insufficient rights."""

    status_code = 403


class NotFoundError(UnityError):
    status_code = 404


class ConflictError(UnityError):
    status_code = 409


class StorageError(UnityError):
    """Underlying data store failure. The message never contains driver or query details."""

    status_code = 500


class ServiceUnavailableError(UnityError):
    status_code = 503
