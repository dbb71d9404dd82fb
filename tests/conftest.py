"""
Test fixtures for the Task Manager API test suite.

This module provides shared fixtures used across all test files:

  - db_engine: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated)
  - alice / bob: Users registered through POST /v1/users (response bodies)
  - authenticated_client: Test client sending alice's API key
  - promote: Coroutine that changes a user's role directly in the database
  - admin_client: Test client for alice after promotion to admin
  - register_user: Registers further users from inside a test
  - password_config: Cheap Argon2id parameters for unit tests

Key design decisions:
  - Argon2 cost settings are lowered through environment variables before
    the application is imported, so every hash in the suite takes
    milliseconds instead of allocating 64 MiB.
  - We override FastAPI's get_db dependency to inject our test session,
    so the application code (including the auth pipeline, which builds its
    UserRepository from the same session) works exactly as in production.
  - Roles are changed by updating the database directly, the same way an
    operator bootstraps the first admin with scripts/promote_user.py.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["PASSWORD_TIME_COST"] = "1"
os.environ["PASSWORD_MEMORY_COST"] = "1024"
os.environ["PASSWORD_PARALLELISM"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from taskmanager.auth.passwords import PasswordConfig
from taskmanager.database import Base, get_db
from taskmanager.main import app
from taskmanager.models import User


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

DEFAULT_PASSWORD = "SecurePass123!"


def api_key_header(api_key: str) -> dict[str, str]:
    return {"Authorization": f"APIKEY {api_key}"}


async def register(client, username: str, password: str = DEFAULT_PASSWORD, **extra) -> dict:
    """Register a user through the real endpoint and return the response body."""
    response = await client.post(
        "/v1/users",
        json={"username": username, "password": password, **extra},
    )
    assert response.status_code == 201, f"Registration failed: {response.text}"
    return response.json()


@pytest.fixture
def register_user(client):
    """Register more users in a test: `await register_user("carol")`."""

    async def _register(username: str, password: str = DEFAULT_PASSWORD, **extra) -> dict:
        return await register(client, username, password, **extra)

    return _register


@pytest.fixture
def password_config():
    return PasswordConfig(time_cost=1, memory_cost=1024, parallelism=1, key_length=32)


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def client(session_factory):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def alice(client):
    return await register(client, "alice", age=30, gender="female")


@pytest_asyncio.fixture
async def bob(client):
    return await register(client, "bob", password="SecurePass456!")


@pytest_asyncio.fixture
async def authenticated_client(client, alice):
    """Test client that sends alice's API key on every request."""
    client.headers.update(api_key_header(alice["api_key"]))
    return client


@pytest_asyncio.fixture
async def promote(session_factory):
    """
    Change a user's role directly in the database.

    The role column is a plain string, so tests can also store a role the
    permission table does not know.
    """

    async def _promote(username: str, role: str) -> None:
        async with session_factory() as session:
            await session.execute(
                update(User).where(User.username == username).values(role=role)
            )
            await session.commit()

    return _promote


@pytest_asyncio.fixture
async def admin_client(authenticated_client, promote):
    """alice's client after alice has been promoted to admin."""
    await promote("alice", "admin")
    return authenticated_client
