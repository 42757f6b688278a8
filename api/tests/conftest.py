"""Pytest configuration and shared fixtures.

This module provides:
- An in-memory SQLite database per test (aiosqlite)
- Async session fixtures for repository/service tests
- FastAPI test client for route integration tests
- An in-memory StreakStore for engine unit tests
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LAPSE_SWEEP_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "development")

from collections.abc import AsyncGenerator, Generator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.config import Settings, clear_settings_cache
from core.database import Base, _enable_sqlite_foreign_keys, create_session_maker
from services.day_boundary import DayBoundary
from tests.fakes import InMemoryStreakStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Default day boundary: UTC+05:30
IST = timedelta(hours=5, minutes=30)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Settings pointing at the in-memory test database."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        lapse_sweep_enabled=False,
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database per test.

    StaticPool keeps the single connection alive so every session sees the
    same database.
    """
    import models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_maker(test_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session for repository/service tests. Tests flush, never commit."""
    async with session_maker() as session:
        yield session


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def app(
    test_engine: AsyncEngine,
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[FastAPI]:
    """FastAPI app wired to the test database, lifespan skipped."""
    from main import app as fastapi_app

    fastapi_app.state.engine = test_engine
    fastapi_app.state.session_maker = session_maker
    fastapi_app.state.init_done = True
    fastapi_app.state.init_error = None

    yield fastapi_app


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing routes."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryStreakStore:
    return InMemoryStreakStore()


@pytest.fixture
def ist_boundary() -> DayBoundary:
    return DayBoundary(IST)


@pytest.fixture
def utc_boundary() -> DayBoundary:
    return DayBoundary()


@pytest.fixture
def base_time() -> datetime:
    """Mid-morning UTC on a fixed day (15:30 at UTC+05:30)."""
    return datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio backend for anyio (required by httpx)."""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
