"""
Async SQLAlchemy engine and session factory.

Nothing is created at import time: ``main.py`` builds the engine on
startup, keeps it on ``app.state`` and disposes it on shutdown.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import Settings
from database.models import Base

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Point plain ``postgres://`` URLs (Heroku / Render style) at asyncpg."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def build_engine(settings: Settings) -> AsyncEngine:
    url = normalize_database_url(settings.database_url)
    kwargs = {"echo": settings.database_echo}
    if url.startswith("postgresql+asyncpg://"):
        kwargs.update(pool_size=5, max_overflow=10, pool_recycle=3600, pool_pre_ping=True)
        if settings.database_ssl:
            kwargs["connect_args"] = {"ssl": settings.database_ssl}
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_schema(engine: AsyncEngine) -> None:
    """Create missing tables. Existing tables and rows are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema verified (tables: %s)", ", ".join(Base.metadata.tables))
