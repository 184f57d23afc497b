"""
Plateful Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── session_factory: SQLite (aiosqlite) database with the real schema
    ├── db_session: one session from that factory
    ├── make_restaurant: inserts Restaurant rows with sensible defaults
    └── test_client: HTTPX AsyncClient wired to the app and the test database
"""

import os

# Override settings BEFORE any app imports so the singleton picks them up
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["VOTE_RETRY_MIN_WAIT_MS"] = "0"
os.environ["VOTE_RETRY_MAX_WAIT_MS"] = "1"

import itertools
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.database import Base, get_db_session
from app.models.restaurant import Restaurant


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = row
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    A fresh SQLite database file per test, schema created from the models.

    NullPool: every session gets its own connection, as with PostgreSQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'plateful_test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def make_restaurant(session_factory):
    """
    Factory fixture: `await make_restaurant(name="Sushi Bar", cuisine="Japanese")`.

    Commits each row in its own session so the code under test sees it.
    """
    counter = itertools.count(1)

    async def _make(**fields) -> Restaurant:
        n = next(counter)
        fields.setdefault("id", f"r{n}")
        fields.setdefault("name", f"Restaurant {n}")
        restaurant = Restaurant(**fields)
        async with session_factory() as session:
            session.add(restaurant)
            await session.commit()
        return restaurant

    return _make


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden to use the per-test SQLite database.
    """
    from app.main import app

    async def _test_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
