"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine and session factory are built by create_app() and kept on
app.state, so each app (and each test) owns its own pool. The connection
pool is the only shared mutable resource in the service.
"""

from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ordergate.db.models import Base


def build_engine(
    database_url: str,
    pool_size: int = 10,
    max_overflow: int = 40,
    echo: bool = False,
) -> AsyncEngine:
    """Create the async engine. echo=True in dev to see SQL queries."""
    kwargs = {"echo": echo}
    # SQLite (tests, local runs) picks its own pool class.
    if make_url(database_url).get_backend_name() != "sqlite":
        kwargs.update(pool_size=pool_size, max_overflow=max_overflow, pool_pre_ping=True)
    return create_async_engine(database_url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory — each request or unit of work gets its own session."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet (CLI init-db and tests)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
