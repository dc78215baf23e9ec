"""
PlantDex Backend — Database Engine and Session Factory
======================================================

What:  Async SQLAlchemy engine construction, session factory, and ORM base.
Who:   DatabaseRecordStore (owns the engine for its lifetime) and Alembic.
When:  The engine is built when the store is wired, not at import time, so
       importing models never opens a connection pool.

Connection Pooling Strategy:
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600 for
    PostgreSQL. SQLite (used by the test-suite through aiosqlite) keeps
    SQLAlchemy's own pool defaults because it rejects the sizing arguments
    on some pool classes.
"""

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from plantdex.config import settings


class Base(DeclarativeBase):
    """Base class for all PlantDex ORM models (shared metadata for Alembic)."""
    pass


def build_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine for `database_url` (defaults to settings).

    Why conditional pool args: only server databases get explicit pool
    sizing; sqlite+aiosqlite uses its dialect's default pool.
    """
    url = make_url(database_url or settings.database_url)
    kwargs = {"echo": settings.log_level == "DEBUG"}
    if not url.get_backend_name().startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False: records are converted to schemas after the
    transaction commits; expired attributes would trigger a reload outside
    the session.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
