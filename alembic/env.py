"""Alembic environment configuration.

Uses the application settings so migrations target the same database.
"""

from logging.config import fileConfig

from sqlalchemy import pool

from alembic import context
from clinic_scheduler.config import settings
from clinic_scheduler.models import metadata

config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = metadata


def get_sync_url() -> str:
    """Alembic runs synchronously: swap the asyncpg driver for psycopg2."""
    return settings.database_url.replace("postgresql+asyncpg://", "postgresql://")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to script output."""
    context.configure(
        url=get_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    from sqlalchemy import create_engine

    connectable = create_engine(get_sync_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
