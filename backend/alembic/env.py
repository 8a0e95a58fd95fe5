"""Alembic environment for the event distributor schema."""

from logging.config import fileConfig

from sqlalchemy import pool, create_engine

from alembic import context

from event_distributor.config import get_settings
from event_distributor.database import Base

# Registers events, platform_configs and publication_logs on Base.metadata
from event_distributor.models import event, platform_config, publication_log  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def sync_database_url() -> str:
    """DATABASE_URL with async drivers swapped for their sync counterparts."""
    url = get_settings().database_url
    for async_driver, sync_driver in (
        ("postgresql+asyncpg://", "postgresql://"),
        ("sqlite+aiosqlite://", "sqlite://"),
    ):
        url = url.replace(async_driver, sync_driver)
    return url


def run_migrations_offline() -> None:
    """Emit SQL without a database connection."""
    context.configure(
        url=sync_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(sync_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
