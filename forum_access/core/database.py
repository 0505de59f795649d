"""
Async engine, sessions and schema bootstrap.

PostgreSQL (asyncpg) in deployments, SQLite (aiosqlite) for local runs.
"""

from typing import Any, AsyncIterator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
import structlog

from forum_access.core.config import DATABASE_CONFIG, settings

logger = structlog.get_logger()

POOL_SIZING_OPTIONS = ("pool_size", "max_overflow", "pool_timeout", "pool_recycle")


def async_database_url(url: str) -> str:
    """Pick the async driver for plain ``postgresql://`` URLs"""
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def engine_options(url: str) -> Dict[str, Any]:
    options = dict(DATABASE_CONFIG)
    if url.startswith("sqlite"):
        for option in POOL_SIZING_OPTIONS:
            options.pop(option)
    elif url.startswith("postgresql"):
        options["connect_args"] = {"server_settings": {"application_name": "forum-access"}}
    return options


database_url = async_database_url(settings.DATABASE_URL)
engine = create_async_engine(database_url, **engine_options(database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Request-scoped session

    Commits when the endpoint returns, rolls back and re-raises otherwise.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_database_health() -> bool:
    try:
        async with engine.connect() as conn:
            return (await conn.execute(text("SELECT 1"))).scalar() == 1
    except Exception as exc:  # noqa: BLE001
        logger.error("Database health check failed", error=str(exc))
        return False


async def init_database() -> None:
    """Create missing tables for every model"""
    from forum_access import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready", dialect=engine.dialect.name)


async def close_database() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
