"""Password hashing and JWT issuance/verification for authentication."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from unity.core.config import Settings
from unity.core.errors import (
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)


# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72

TOKEN_TTL = timedelta(hours=24)
REQUIRED_CLAIMS = ("sub", "username", "role", "iat", "exp")


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Each call uses a fresh salt."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. A malformed hash never matches."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class TokenClaims:
    """Claims recovered from a verified token."""

    user_id: int | None
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenService:
    """
    Issues and verifies signed access tokens.

    Built once from settings at application startup and passed to whatever needs it;
    the secret cannot change for the lifetime of the instance. `clock` is injectable
    so expiry can be checked against an arbitrary instant.
    """

    secret: str = field(repr=False)
    algorithm: str = "HS256"
    ttl: timedelta = TOKEN_TTL
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.secret or not self.secret.strip():
            raise ValueError("Token signing secret must be non-empty")
        if self.ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        )

    def issue(
        self,
        user_id: int | None,
        username: str,
        role: str,
        now: datetime | None = None,
    ) -> str:
        """Create a token embedding user id, username, role, iat and exp = iat + ttl."""
        issued_at = now or self.clock()
        payload: dict[str, Any] = {
            "sub": "" if user_id is None else str(user_id),
            "username": username,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> TokenClaims:
        """
        Verify signature and expiry; return the embedded claims.

        Raises InvalidSignatureError when the token was not signed with this secret,
        MalformedTokenError when it cannot be parsed or lacks claims, and
        TokenExpiredError when `now` is past the embedded expiry.
        """
        if not token:
            raise MalformedTokenError("Invalid token")
        try:
            # Expiry is checked below against our own clock.
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": list(REQUIRED_CLAIMS),
                },
            )
        except jwt.InvalidSignatureError as e:
            raise InvalidSignatureError("Invalid token") from e
        except jwt.PyJWTError as e:
            raise MalformedTokenError("Invalid token") from e

        username = payload.get("username")
        role = payload.get("role")
        if not isinstance(username, str) or not username or not isinstance(role, str):
            raise MalformedTokenError("Invalid token payload")
        try:
            issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        except (TypeError, ValueError, OverflowError) as e:
            raise MalformedTokenError("Invalid token payload") from e

        current = now or self.clock()
        if current > expires_at:
            raise TokenExpiredError("Token has expired")

        sub = payload.get("sub")
        try:
            user_id = int(sub) if sub not in (None, "") else None
        except (TypeError, ValueError):
            user_id = None
        return TokenClaims(
            user_id=user_id,
            username=username,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
