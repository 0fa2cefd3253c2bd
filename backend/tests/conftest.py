"""
Kindred Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock session for pure unit tests
    ├── db_engine:        fresh SQLite file database per test, schema created
    ├── db_session:       AsyncSession on db_engine
    ├── make_profile:     factory inserting a profile + credits row
    └── test_client:      HTTPX AsyncClient over ASGI, sessions from db_engine
"""

import os

# Settings are read once at import time: set the environment before any kindred import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./kindred_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ADMIN_USER_IDS"] = "1"
os.environ["SCORE_UPDATE_MIN_WAIT"] = "0"
os.environ["SCORE_UPDATE_MAX_WAIT"] = "0.01"

from datetime import date
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from kindred.database import Base, get_db_session
import kindred.models  # noqa: F401
from kindred.models.match import Credit
from kindred.models.profile import Profile
from kindred.timeutils import utcnow


# ══════════════════════════════════════════════════════════════════════════
# Unit-Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        async def test_x(mock_db_session):
            mock_db_session.scalar.return_value = 70.0
            ...
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures (SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    A throwaway SQLite database with every table created.

    pysqlite's own transaction handling breaks SAVEPOINT, which the analytics
    tracking relies on; the two listeners hand BEGIN back to SQLAlchemy.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'kindred.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def make_profile(db_session):
    """
    Factory: insert a profile (and its credits row) and return it.

    Usage:
        alice = await make_profile(user_id=1, gender="female", interested_in="male")
    """

    async def _make(
        user_id: int,
        name: str = "Test",
        gender: str = "female",
        interested_in: str = "everyone",
        score: float = 70.0,
        credits: int = 10,
    ) -> Profile:
        profile = Profile(
            user_id=user_id,
            name=name,
            birthdate=date(1995, 6, 15),
            gender=gender,
            interested_in=interested_in,
            score=score,
        )
        db_session.add(profile)
        await db_session.flush()
        db_session.add(Credit(profile_id=profile.id, amount=credits, last_refreshed=utcnow()))
        await db_session.flush()
        return profile

    return _make


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine):
    """
    HTTPX AsyncClient talking to the app in-process.

    get_db_session is overridden to use the per-test SQLite database with the
    same commit-or-rollback behavior as production.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from kindred.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
