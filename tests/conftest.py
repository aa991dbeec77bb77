"""
Shared test fixtures for the Store Rating System test suite.

Each test runs against a fresh in-memory SQLite database (aiosqlite) wired
into the app through the ``get_db`` dependency override.
"""

import itertools
import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.core.security import create_access_token, get_password_hash
from app.db.base import Base
from app.main import app
from app.models.user import ROLE_NORMAL_USER, User
from app.services import ownership

DEFAULT_PASSWORD = "Secret@123"
# bcrypt is slow on purpose; hash once for every fixture user
_DEFAULT_HASH = get_password_hash(DEFAULT_PASSWORD)


@pytest.fixture(autouse=True)
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create a fresh database, route the app to it, drop it afterwards."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield factory

    app.dependency_overrides.pop(get_db, None)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory: insert a user with the given role straight into the database."""
    counter = itertools.count(1)

    async def _make(role: str = ROLE_NORMAL_USER, name: str | None = None) -> User:
        n = next(counter)
        user = User(
            name=name or f"Test Account Holder {n:04d}",
            email=f"user{n}@example.com",
            address=f"{n} Test Street",
            hashed_password=_DEFAULT_HASH,
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_store(db_session: AsyncSession):
    """Factory: create a store through the ownership engine."""
    counter = itertools.count(1)

    async def _make(owner: User, name: str | None = None, address: str | None = None):
        n = next(counter)
        return await ownership.create_store(
            db_session,
            name=name or f"Neighbourhood Store Number {n:03d}",
            email=f"store{n}@example.com",
            address=address or f"{n} Market Road",
            owner_id=owner.id,
        )

    return _make


@pytest.fixture
def auth_headers():
    """Build a bearer Authorization header for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role)}"}

    return _headers


@pytest.fixture
def fresh(db_session: AsyncSession):
    """Re-read a row, discarding whatever the test session had cached."""

    async def _fresh(model, pk):
        return await db_session.get(model, pk, populate_existing=True)

    return _fresh
