"""
DevJournal Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool) and a fresh app whose collaborators are overridden:

       get_db_session         → session on the test engine
       get_identity_provider  → FakeIdentityProvider (token → Principal)
       get_summarizer         → FakeSummarizer

Fixtures:
    db_engine / db_session     real ORM against SQLite
    identity / summarizer      the fakes, configurable per test
    test_client                httpx AsyncClient over ASGITransport
    mock_db_session            AsyncMock session for pure unit tests
"""

import os

# Settings are read at import time; configure them BEFORE importing devjournal
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["GEMINI_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from devjournal.auth.dependencies import get_identity_provider, get_summarizer
from devjournal.auth.identity import IdentityProvider, Principal
from devjournal.database import Base, get_db_session
from devjournal.exceptions import AuthenticationError, LLMServiceError
from devjournal.services.llm_base import Summarizer
import devjournal.models  # noqa: F401


# ══════════════════════════════════════════════════════════════════════════
# Fakes
# ══════════════════════════════════════════════════════════════════════════

class FakeIdentityProvider(IdentityProvider):
    """Accepts only the tokens registered with add(); everything else is a 401."""

    def __init__(self):
        self.principals: Dict[str, Principal] = {}
        self.calls: List[str] = []

    def add(self, token: str, subject_id: str, email: Optional[str], **metadata) -> Principal:
        principal = Principal(subject_id=subject_id, email=email, metadata=metadata)
        self.principals[token] = principal
        return principal

    async def verify_token(self, token: str) -> Principal:
        self.calls.append(token)
        if token not in self.principals:
            raise AuthenticationError("Invalid or expired token")
        return self.principals[token]


class FakeSummarizer(Summarizer):
    """Returns a canned summary, or raises LLMServiceError when `fail` is set."""

    def __init__(self, summary: str = "A short summary of the entry."):
        self.summary = summary
        self.fail = False
        self.available = True
        self.calls: List[str] = []

    @property
    def is_available(self) -> bool:
        return self.available

    async def summarize(self, text: str) -> str:
        self.calls.append(text)
        if self.fail:
            raise LLMServiceError("Failed to generate summary. Please try again later.")
        return self.summary

    async def health_check(self) -> bool:
        return self.available


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session for service-level tests; the caller decides when to commit."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Mock async session for unit tests that never touch SQL.

    Usage:
        result = MagicMock()
        result.scalar_one_or_none.return_value = user
        mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def identity() -> FakeIdentityProvider:
    """
    Pre-registered callers:
        token-alice → alice@example.com
        token-bob   → bob@example.com
    """
    provider = FakeIdentityProvider()
    provider.add("token-alice", "sub-alice", "alice@example.com", name="Alice Adams")
    provider.add("token-bob", "sub-bob", "bob@example.com", name="Bob Brown")
    return provider


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def alice() -> Dict[str, str]:
    return bearer("token-alice")


@pytest.fixture
def bob() -> Dict[str, str]:
    return bearer("token-bob")


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, identity, summarizer):
    """
    HTTPX AsyncClient bound to a fresh app with test overrides.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from devjournal.main import create_app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_summarizer] = lambda: summarizer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
