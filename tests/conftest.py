"""Shared test fixtures."""

from collections.abc import AsyncIterator

import pytest
from litestar import Litestar
from litestar.testing import AsyncTestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from fitness_tracker_server.app import create_app
from fitness_tracker_server.core.config import Settings
from fitness_tracker_server.core.password import PasswordHasher
from fitness_tracker_server.models.base import Base
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Cheap hasher so tests stay fast."""
    return PasswordHasher(cost=1, memory_cost=1024)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
        password_hash_cost=1,
        rate_limit_max_requests=100,
        auth_rate_limit_max_requests=5,
    )


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Create async session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(
    test_settings: Settings,
    async_engine: AsyncEngine,
    clock: FakeClock,
    hasher: PasswordHasher,
) -> Litestar:
    return create_app(test_settings, engine=async_engine, clock=clock, password_hasher=hasher)


@pytest.fixture
async def client(app: Litestar) -> AsyncIterator[AsyncTestClient]:
    """Test client with the application lifespan running."""
    async with AsyncTestClient(app=app) as test_client:
        yield test_client
