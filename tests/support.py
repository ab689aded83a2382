"""Shared test fixtures: in-memory SQLite database, settings, seeded users and an app client."""

from collections.abc import Generator

from fastapi.testclient import TestClient
from pydantic import SecretStr
from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from unity.core.config import Settings
from unity.core.database import get_db
from unity.core.security import hash_password
from unity.main import create_app
from unity.models import Base, Comment, Post, PostLike, User
from unity.repositories import users as users_repo

TEST_SECRET = "unity-test-secret-0123456789abcdef0123456789"
FAST_ROUNDS = 4


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": SecretStr(TEST_SECRET),
        "BCRYPT_ROUNDS": FAST_ROUNDS,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_engine() -> Engine:
    """One shared in-memory SQLite connection with the full schema."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def make_file_engine(path: str) -> Engine:
    """
    File-backed SQLite with the full schema, one connection per thread.

    Every transaction starts with BEGIN IMMEDIATE, so writers queue on the database lock
    the way PostgreSQL queues them on SELECT ... FOR UPDATE.
    """
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_user(db: Session, username: str, password: str = "pw1", role: str = "user") -> User:
    return users_repo.create_user(
        db,
        username=username,
        password_hash=hash_password(password, rounds=FAST_ROUNDS),
        role=role,
    )


def make_client(
    session_factory: sessionmaker,
    settings: Settings | None = None,
    **client_kwargs: object,
) -> TestClient:
    """TestClient for a fresh app whose get_db yields sessions from session_factory."""
    app = create_app(settings or make_settings())

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app, **client_kwargs)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def counter_mismatches(db: Session) -> list[int]:
    """Ids of posts whose likes/comments_count differ from the related row counts."""
    bad: list[int] = []
    for post in db.scalars(select(Post)):
        likes = db.scalar(
            select(func.count()).select_from(PostLike).where(PostLike.post_id == post.id)
        )
        comments = db.scalar(
            select(func.count()).select_from(Comment).where(Comment.post_id == post.id)
        )
        if post.likes != likes or post.comments_count != comments:
            bad.append(post.id)
    return bad
