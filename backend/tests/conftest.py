"""Pytest configuration and fixtures for keygate tests."""

import pytest
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from keygate.main import app
from keygate.database import Base, get_db
from keygate.config import settings
from keygate.models import User
from keygate.services import APIKeyService


# Test database URL (in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "slow: Slow tests")


@pytest.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with the test database session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def user(db_session) -> User:
    """A key owner."""
    owner = User(username="alice", email="alice@example.com")
    db_session.add(owner)
    await db_session.commit()
    return owner


@pytest.fixture
async def other_user(db_session) -> User:
    """A second owner, used for ownership checks."""
    owner = User(username="mallory")
    db_session.add(owner)
    await db_session.commit()
    return owner


@pytest.fixture
def key_service(db_session) -> APIKeyService:
    return APIKeyService(db_session)


# Admin auth fixture
@pytest.fixture
def admin_headers():
    """Headers with admin authentication."""
    return {"X-Admin-Secret": settings.ADMIN_SECRET}
