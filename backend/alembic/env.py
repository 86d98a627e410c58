"""
Alembic Migration Environment
===============================

What:  Runs DevJournal migrations through an async engine.
How:   The URL always comes from devjournal.config (DATABASE_URL), never from
       alembic.ini, so `alembic upgrade head` and the app hit the same
       database.

    alembic upgrade head          → online, asyncpg (or aiosqlite locally)
    alembic upgrade head --sql    → offline, SQL printed to stdout

SQLite cannot ALTER most constraints in place, so batch mode is switched on
for sqlite URLs.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from alembic import context

from devjournal.config import settings
from devjournal.database import Base

# Registers users, entries, snippets, tags and entry_tags on Base.metadata
import devjournal.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_options() -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": settings.is_sqlite,
    }


def run_migrations_offline() -> None:
    context.configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def _run_sync_migrations(connection) -> None:
    context.configure(connection=connection, **_configure_options())

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    # One-shot connection; the app's pool settings do not apply here
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
