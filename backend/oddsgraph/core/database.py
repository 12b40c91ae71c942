import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from oddsgraph.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def build_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        if ":memory:" in url or url.rstrip("/").endswith(":"):
            # One shared connection, or every session would see its own empty database.
            return create_async_engine(url, future=True, poolclass=StaticPool)
        return create_async_engine(url, future=True)
    return create_async_engine(url, future=True, pool_pre_ping=True)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services keep reading rows after each per-event commit.
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


logger.info(
    "Database URL resolved",
    extra={
        "database_url_source": settings.resolved_database_url_source,
        "database_host": settings.postgres_host if settings.resolved_database_url_source == "postgres_fallback" else None,
        "database_name": settings.postgres_db if settings.resolved_database_url_source == "postgres_fallback" else None,
    },
)

engine = build_engine(settings.resolved_database_url)
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
