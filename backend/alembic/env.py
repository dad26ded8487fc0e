"""
Alembic Migration Environment
===============================

What:  Configures Alembic to work with the async SQLAlchemy store.
How:   Builds the URL exactly as the service does (build_store_url) and runs
       migrations through an async engine.
Who:   Called by `alembic` CLI commands (upgrade, downgrade, revision).
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from simplecrud.config import settings
from simplecrud.database import build_store_url
from simplecrud.models.document import documents_table

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# The collection table for the configured DB_COLLECTION
target_metadata = documents_table(settings.db_collection).metadata

# Single source of truth for the store URL: the service settings
config.set_main_option(
    "sqlalchemy.url",
    build_store_url(settings).render_as_string(hide_password=False).replace("%", "%%"),
)


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting to the database."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect with an async engine and apply pending migrations."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
