"""
Pytest configuration and fixtures.
"""

import os
from collections.abc import AsyncGenerator
from typing import Any
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment before importing app
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32chars!"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["DATABASE_ENABLED"] = "false"
os.environ["GENERATION_WORKER_MODE"] = "disabled"
os.environ["GENERATION_FAILURE_RATE"] = "0"
os.environ["STORAGE_LOCAL_PATH"] = "/nonexistent/visioncast-test-storage"


# ============ Database Fixtures ============


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine installed as the application engine."""
    from database import close_database, configure_engine
    from database.models import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    configure_engine(engine)
    yield engine
    await close_database()


@pytest.fixture
async def session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """A session that commits when the test body finishes."""
    from database import session_scope

    async with session_scope() as session:
        yield session


# ============ Users & Usage ============


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_usage(db_engine):
    """Factory provisioning a committed usage period for a user."""
    from database import session_scope
    from database.repositories import UsageRepository

    async def _make_usage(user_id: UUID, **kwargs):
        async with session_scope() as session:
            return await UsageRepository(session).create(user_id, **kwargs)

    return _make_usage


@pytest.fixture
async def usage(make_usage, user_id):
    """Usage period for the default test user."""
    return await make_usage(user_id)


# ============ App Fixtures ============


@pytest.fixture
def app(db_engine, user_id):
    """Application with authentication resolved to the default test user."""
    from api.main import app
    from core.auth import AppUser, require_current_user

    async def _current_user() -> AppUser:
        return AppUser(id=user_id, email="creator@example.com", name="Test Creator")

    app.dependency_overrides[require_current_user] = _current_user
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Asynchronous test client acting as the default test user."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def anonymous_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """Asynchronous test client without authentication overrides."""
    from api.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


# ============ Mock Redis ============


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._expiry: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str, ex: int = None) -> bool:
        self._data[key] = value
        if ex:
            self._expiry[key] = ex
        return True

    async def delete(self, key: str) -> int:
        if key in self._data:
            del self._data[key]
            return 1
        return 0

    async def expire(self, key: str, seconds: int) -> bool:
        self._expiry[key] = seconds
        return True

    async def incrby(self, key: str, amount: int = 1) -> int:
        current = int(self._data.get(key, 0))
        new_value = current + amount
        self._data[key] = str(new_value)
        return new_value

    def pipeline(self):
        return MockPipeline(self)

    async def close(self):
        pass


class MockPipeline:
    """Mock Redis pipeline."""

    def __init__(self, redis: MockRedis):
        self._redis = redis
        self._commands = []

    def incrby(self, key: str, amount: int):
        self._commands.append(("incrby", key, amount))
        return self

    def expire(self, key: str, seconds: int):
        self._commands.append(("expire", key, seconds))
        return self

    async def execute(self):
        results = []
        for cmd in self._commands:
            if cmd[0] == "incrby":
                results.append(await self._redis.incrby(cmd[1], cmd[2]))
            elif cmd[0] == "expire":
                results.append(await self._redis.expire(cmd[1], cmd[2]))
        self._commands = []
        return results

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def mock_redis():
    """Create a mock Redis instance."""
    return MockRedis()


# ============ Test Data Fixtures ============


@pytest.fixture
def sample_image_request():
    """Sample image creation request."""
    return {
        "type": "image",
        "title": "Sunset over the bay",
        "prompt": "A warm sunset over a quiet bay, watercolor",
        "style": "watercolor",
        "size": "512x512",
        "quality": "high",
        "tags": ["sunset", "sea"],
    }


@pytest.fixture
def sample_video_request():
    """Sample video creation request."""
    return {
        "type": "video",
        "title": "City timelapse",
        "prompt": "Timelapse of a city skyline from dusk to night",
        "duration": 10,
    }
