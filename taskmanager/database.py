"""
Task Management API: Database Engine and Sessions
=================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       UTC timestamp column type shared by every model.
How:   `Database` is built from `Settings` by the application factory and
       stored on `app.state`; stores receive it and open units of work
       through `Database.session()`.
When:  Engine is created per application; tables are created during the
       lifespan startup (the default in-memory database starts empty).

Connection Strategy:
    sqlite+aiosqlite:///:memory:   StaticPool, one shared connection so every
                                   session sees the same in-memory database
    sqlite+aiosqlite:///file.db    default pool
    postgresql+asyncpg://...       pool_size / max_overflow / pre_ping from settings
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from taskmanager.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models; shares one metadata object."""


class UTCDateTime(TypeDecorator):
    """
    Timestamp column that always round-trips as an aware UTC datetime.

    SQLite has no timezone storage, so values are written as naive UTC and
    re-tagged with `timezone.utc` on the way out. Naive inputs are assumed
    to already be UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def _engine_options(settings: Settings) -> Dict[str, Any]:
    if settings.database_url.endswith(":memory:"):
        return {"poolclass": StaticPool}
    if settings.is_sqlite:
        return {}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


class Database:
    """
    Owns the engine and session factory for one application instance.

    expire_on_commit=False keeps ORM objects readable after their session
    closes; stores hand those objects to the service layer.
    """

    def __init__(self, settings: Settings):
        self.engine: AsyncEngine = create_async_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
            **_engine_options(settings),
        )
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        One serialized unit of work.

        Sessions are handed out one at a time. The in-memory database is a
        single shared connection, so an interleaved session closing (which
        rolls back on return to the pool) would discard another session's
        pending statements. On error the session is rolled back and the
        exception propagates.
        """
        async with self._lock, self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_schema(self) -> None:
        """Create every table registered on `Base.metadata` if missing."""
        # Models must be imported so their tables are registered
        from taskmanager.models import task, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def ping(self) -> bool:
        """Lightweight connectivity probe for the health endpoint."""
        from sqlalchemy import text

        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()
