"""Async SQLite storage for saved recordings."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from assistant_web.config import settings

engine = create_async_engine(settings.database_url, echo=settings.is_development)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def init_db() -> None:
    """Create the recording tables if they are missing."""
    import assistant_web.models  # noqa: F401  register mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Drop pooled connections; they are bound to the event loop that opened them."""
    await engine.dispose()
