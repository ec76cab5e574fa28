"""Database engine and session factory construction."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from eduvoice.config import Settings
from eduvoice.db.base import Base


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    url = settings.async_database_url
    if not url:
        raise ValueError("DATABASE_URL must be set to use the database storage backend")

    kwargs: dict = {"echo": settings.debug, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        kwargs.update(pool_size=5, max_overflow=10)
        if settings.database_requires_ssl:
            kwargs["connect_args"] = {"ssl": "require"}
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables directly (tests and throwaway databases; production uses Alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
