"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
Every request gets its own session; the pooled engine is the only state
shared between requests.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from liftlog.config import settings
from liftlog.db.models import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, wiring SQLite-specific pragmas when needed."""
    if not url.startswith("sqlite"):
        # Connection pool: min 5, max 20 connections.
        kwargs.setdefault("pool_size", 5)
        kwargs.setdefault("max_overflow", 15)
    eng = create_async_engine(url, **kwargs)
    if eng.dialect.name == "sqlite":
        event.listen(eng.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return eng


# echo=True in dev to see SQL queries.
engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(eng: AsyncEngine = engine) -> None:
    """Create any missing tables. Development/test bootstrap; use Alembic in production."""
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
