"""
Database session configuration
Async PostgreSQL connection using SQLAlchemy 2.0
"""
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.orm import declarative_base

logger = logging.getLogger(__name__)

# Base for models
Base = declarative_base()


def to_async_url(db_url: str) -> str:
    """Convert to async driver"""
    if db_url.startswith("postgresql://"):
        return db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return db_url


def create_engine(db_url: str) -> AsyncEngine:
    url = to_async_url(db_url)
    if url.startswith("postgresql+asyncpg://"):
        return create_async_engine(
            url,
            echo=False,  # Set to True for SQL logging
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10
        )
    return create_async_engine(url, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create alert tables (development only)"""
    # Registers the tables on Base.metadata
    from .models import alert  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database schema ready")


async def check_connection(engine: AsyncEngine) -> bool:
    from sqlalchemy import text

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"⚠️ Database check failed: {e}")
        return False
