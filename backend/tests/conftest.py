"""
ALOKA Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied before any `aloka` import, so the
       settings singleton and module-level engine are built for tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for pure service unit tests
    ├── db_engine:       in-memory aiosqlite engine with the schema created
    ├── session_factory: sessions bound to db_engine
    ├── db_session:      one open session on db_engine
    ├── make_studio:     builds Studio rows with sensible defaults
    └── test_client:     HTTPX AsyncClient over a fresh app using db_engine
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["STUDIO_WRITES_REQUIRE_AUTH"] = "false"
os.environ["EXPOSE_ERROR_DETAILS"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from aloka.database import Base, get_db_session
from aloka.models.studio import Studio
from aloka.models.user import User  # noqa: F401  (registers the users table)


BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        async def test_update(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = studio
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single connection alive; an in-memory SQLite
    database disappears with its last connection.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_studio():
    """
    Build (not persist) a Studio. `minutes` offsets created_at from a fixed
    base time so ordering tests are deterministic.
    """
    def _make(minutes: int = 0, **overrides) -> Studio:
        created = BASE_TIME + timedelta(minutes=minutes)
        values = {
            "id": uuid4(),
            "studio_name": "Studio",
            "description": "A bright space",
            "address": "1 Main St",
            "city": "Mumbai",
            "state": "MH",
            "zip_code": "400001",
            "per_hour_charge": 100.0,
            "max_distance": 50.0,
            "rating": 0.0,
            "services": [],
            "equipment": [],
            "images": [],
            "is_active": True,
            "deleted_at": None,
            "created_at": created,
            "updated_at": created,
        }
        values.update(overrides)
        return Studio(**values)

    return _make


@pytest.fixture
def seed(session_factory):
    """Persist rows in their own committed transaction."""
    async def _seed(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows

    return _seed


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    A new app per test also means a fresh rate limiter. The lifespan does
    not run under ASGITransport, so nothing here depends on it.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from aloka.main import create_app

    app = create_app()

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
