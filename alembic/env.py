"""Alembic environment for the unity schema. DATABASE_URL comes from unity settings, never alembic.ini."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from unity.core.config import get_settings
from unity.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# unity.models registers users, posts, post_likes, comments and heroes on Base.
target_metadata = Base.metadata

MIGRATION_OPTIONS = {
    "target_metadata": target_metadata,
    "compare_type": True,
}


def run_migrations_offline(url: str) -> None:
    """Emit SQL for the pending revisions without connecting."""
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
        **MIGRATION_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    # SQLite cannot ALTER most constraints in place; batch mode copies the table instead.
    engine = create_engine(url, poolclass=NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            render_as_batch=connection.dialect.name == "sqlite",
            **MIGRATION_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


database_url = get_settings().DATABASE_URL
if context.is_offline_mode():
    run_migrations_offline(database_url)
else:
    run_migrations_online(database_url)
