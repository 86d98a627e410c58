"""
DevJournal Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
How:   One engine per process; one session per request. The dependency
       commits when the handler returns and rolls back when it raises, so
       every write endpoint is a single all-or-nothing unit.

Pooling (server databases only):
    pool_size=20, max_overflow=10 → at most 30 connections
    pool_pre_ping                 → stale connections are replaced before use
    pool_recycle=3600             → connections are recycled hourly

    SQLite (used by the test suite) manages its own pool, so these options
    are not passed for sqlite URLs.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from devjournal.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: ORM objects stay readable after commit without
# triggering lazy loads (which are not allowed under asyncio)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Flow:
        1. Open a session from the factory
        2. Yield it to the route handler (and to auth dependencies, which
           share it through FastAPI's per-request dependency cache)
        3. Commit on success, roll back on any exception, always close

    Example usage in a route:
        @router.get("/entries/my")
        async def my_entries(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise  # Re-raise so the global error handler can respond
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes every pooled connection. Called from the app lifespan on shutdown."""
    await engine.dispose()
