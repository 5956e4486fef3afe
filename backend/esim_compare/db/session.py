"""Async database session and engine configuration."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from esim_compare.config import Settings, settings
from esim_compare.models import Base


def build_engine(config: Settings = settings) -> AsyncEngine:
    """Create the async engine for the configured DATABASE_URL."""
    # SQLite doesn't support pool_size / max_overflow / pool_pre_ping
    is_sqlite = config.DATABASE_URL.startswith("sqlite")

    engine_kwargs: dict = {"echo": config.DEBUG and config.LOG_LEVEL.upper() == "DEBUG"}
    if not is_sqlite:
        engine_kwargs.update(pool_size=5, max_overflow=5, pool_pre_ping=True)

    return create_async_engine(config.DATABASE_URL, **engine_kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the store; objects stay readable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create every catalog table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
