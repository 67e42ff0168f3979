"""Test fixtures — a fresh database per test.

Learn: Each test gets its own engine with the schema created from the
models, so there is no cross-test pollution and no external server is
needed. The default is in-memory SQLite (aiosqlite); point
TOLLGATE_TEST_DATABASE_URL at a scratch Postgres database to run the
same suite against asyncpg.

The app's get_db dependency is overridden to hand out the test session,
so requests and direct service calls in one test see the same data.
"""

import os

# Must be set before tollgate.config builds its settings singleton.
os.environ.setdefault("TOLLGATE_API_KEY", "test-api-key")
os.environ.setdefault("TOLLGATE_ENVIRONMENT", "development")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tollgate.auth.session_crypto import SessionCipher
from tollgate.config import settings
from tollgate.db.engine import get_db
from tollgate.db.models import Base
from tollgate.main import app
from tollgate.services.session_service import SessionService
from tollgate.services.user_service import UserService

TEST_DB_URL = os.environ.get(
    "TOLLGATE_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"
)
API_KEY = settings.api_key


def _enable_sqlite_foreign_keys(dbapi_connection, _record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture()
async def db_engine():
    """Per-test engine with all tables created, dropped afterwards."""
    if TEST_DB_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DB_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(TEST_DB_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def cipher():
    """A cipher with its own key, independent of the app's settings."""
    return SessionCipher("test-session-secret", "test-key-salt")


@pytest.fixture()
def users(db_session):
    return UserService(db_session)


@pytest.fixture()
def sessions(db_session):
    return SessionService(db_session)


@pytest.fixture()
def make_user(users):
    """Factory: create a user with a hashed password."""
    counter = {"n": 0}

    async def _make(
        email: str | None = None,
        password: str = "pw123",
        first_name: str = "Test",
        last_name: str = "User",
    ):
        counter["n"] += 1
        return await users.create(
            first_name=first_name,
            last_name=last_name,
            email=email or f"user{counter['n']}@example.com",
            password=password,
        )

    return _make


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with get_db overridden and the API key pre-set."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-API-Key": API_KEY},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def keyless_client(db_session):
    """HTTP client WITHOUT the API key header — for testing key enforcement."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
