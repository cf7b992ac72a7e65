"""
Database Configuration
SQLAlchemy async setup (PostgreSQL via asyncpg, SQLite via aiosqlite)
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from typing import AsyncGenerator

from portfolio_tracker.config import settings


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


def _async_url(url: str) -> str:
    # Convert postgres:// to postgresql+asyncpg://
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


DATABASE_URL = _async_url(settings.DATABASE_URL)

if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(DATABASE_URL, echo=settings.DEBUG)
else:
    engine = create_async_engine(
        DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=3600
    )

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database session
    Use in FastAPI routes as:
    async def my_route(db: AsyncSession = Depends(get_db))
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Create tables from ORM metadata when AUTO_CREATE_TABLES is set"""
    if not settings.AUTO_CREATE_TABLES:
        return
    async with engine.begin() as conn:
        # Import all models here to ensure they're registered
        from portfolio_tracker.infrastructure.db import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connections"""
    await engine.dispose()
