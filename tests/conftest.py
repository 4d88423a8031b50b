"""Test fixtures — a fresh in-memory SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on sqlite+aiosqlite:///:memory: with
   StaticPool, so every session in the test sees the same database.
2. Tables are created with Base.metadata.create_all (no Alembic needed).
3. The app's get_db is overridden to open a new session per request,
   exactly like production — nothing is shared between requests but the
   database itself.

Env vars are set before liftlog is imported so Settings picks them up:
cheap bcrypt rounds keep the suite fast, and the background token sweeper
stays off.
"""

import os

os.environ.setdefault("LIFTLOG_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LIFTLOG_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LIFTLOG_TOKEN_SWEEP_INTERVAL_SECONDS", "0")
os.environ.setdefault("LIFTLOG_STORAGE_RETRY_BACKOFF_SECONDS", "0")

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from liftlog.auth.password import hash_password
from liftlog.db import engine as db_engine
from liftlog.db.engine import build_engine, get_db
from liftlog.db.models import Base, User
from liftlog.main import app

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password_123"


@pytest_asyncio.fixture()
async def engine(monkeypatch):
    """Per-test engine with all tables created."""
    eng = build_engine(TEST_DB_URL, poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    # Health check talks to the module-level engine
    monkeypatch.setattr(db_engine, "engine", eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def make_user(session_factory):
    """Factory: insert a user directly and return it.

    Learn: Going through the DB (not the API) keeps store and service
    tests independent of the HTTP layer.
    """
    async def _make(username=None, password=TEST_PASSWORD, user_id=None):
        username = username or f"user-{uuid.uuid4().hex[:8]}"
        async with session_factory() as session:
            user = User(
                id=user_id,
                username=username,
                email=f"{username}@example.com",
                password_hash=hash_password(password),
                bio="",
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with get_db pointed at the test database.

    Learn: Auth is NOT mocked. Tests register, log in, and send real
    bearer tokens, so the whole pipeline runs on every request.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def login(client):
    """Factory: register a user via the API and return auth headers."""
    async def _login(username=None):
        username = username or f"user-{uuid.uuid4().hex[:8]}"
        r = await client.post(
            "/api/v1/users",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": TEST_PASSWORD,
            },
        )
        assert r.status_code == 201, r.text
        r = await client.post(
            "/api/v1/tokens/authentication",
            json={"username": username, "password": TEST_PASSWORD},
        )
        assert r.status_code == 201, r.text
        token = r.json()["auth_token"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _login
