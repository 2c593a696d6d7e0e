"""Engine and sessions for the membership registry.

The tenant directory is a separate database with its own engine, built
with the same ``build_engine`` in ``clubhub.modules.tenants.directory``.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from clubhub.config import settings


def build_engine(url: str, pool_size: int, max_overflow: int = 0) -> AsyncEngine:
    """Async engine for ``url``; pool sizing only applies to PostgreSQL."""
    options: dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(pool_size=pool_size, max_overflow=max_overflow)
    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services commit explicitly and read attributes after commit
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async_engine = build_engine(
    settings.async_database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)
async_session_factory = build_session_factory(async_engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped registry session, committed when the route returns."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()
