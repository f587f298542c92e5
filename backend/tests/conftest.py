"""
Shared fixtures: an authenticated API client over a mocked session, and an
in-memory SQLite database for CRUD-level tests
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import wayfarer.db.base  # noqa: F401
from wayfarer.api.rate_limit import limiter
from wayfarer.core.security import get_current_user, token_blacklist
from wayfarer.db.session import get_db_session
from wayfarer.main import app


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    enabled = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = enabled


@pytest.fixture(autouse=True)
def clear_token_blacklist():
    token_blacklist.clear()
    yield
    token_blacklist.clear()


def make_user(**overrides):
    now = datetime.now(timezone.utc)
    fields = {
        "id": uuid.uuid4(),
        "username": "traveller",
        "email": "traveller@example.com",
        "status": "active",
        "created_at": now,
        "updated_at": now,
        "is_active": True,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def user_factory():
    return make_user


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def client(user, mock_session):
    """TestClient with the current user and database session overridden"""
    async def override_session():
        yield mock_session

    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_db_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(mock_session):
    async def override_session():
        yield mock_session

    app.dependency_overrides[get_db_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()
