# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# One `Database` object per application, created by `create_app()` from
# Settings and kept on `app.state.database`. It owns:
#   - the async SQLAlchemy engine (aiosqlite locally, any async URL hosted)
#   - the session factory
#   - schema creation (`CREATE TABLE IF NOT EXISTS`, run at startup)
#
# SESSION LIFECYCLE (request-scoped, via `get_async_session`):
# 1. Request arrives, dependency opens a session
# 2. Route handler / repository runs its statements
# 3. Session commits when the handler returns
# 4. On exception, the transaction is rolled back
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from voicenotes.db.models import Base

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo)

        # expire_on_commit=False: ORM objects stay readable after commit,
        # when the handler builds its response.
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings) -> Database:
        return cls(settings.resolved_database_url, echo=settings.debug)

    async def init_schema(self) -> None:
        """Create missing tables. Existing tables are left untouched."""
        url = make_url(self.url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready (%s)", url.render_as_string(hide_password=True))

    async def ping(self) -> None:
        """Round-trip a trivial statement; raises on connection failure."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The session commits when the handler returns and rolls back if it
    raises.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
