"""Database configuration and session management for async SQLAlchemy."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from curriculum_assets.config.settings import get_settings

class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass

def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for ``database_url``."""
    return create_async_engine(
        database_url,
        echo=False,
        future=True
    )

def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False
    )


engine: AsyncEngine = build_engine(get_settings().database_url)

async_session_maker = build_session_maker(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database and create all tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
