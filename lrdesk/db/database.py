"""
Database Configuration and Session Management
Supports both SQLite (development) and PostgreSQL (production)
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from typing import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlparse

import structlog

from lrdesk.config import settings

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = urlparse(database_url)
    db_path = parsed.path
    if not db_path or db_path.endswith(":memory:"):
        return
    # On Windows urlparse yields a leading slash before drive letter: '/C:/...'
    if db_path.startswith("/") and len(db_path) > 2 and db_path[2] == ":":
        db_path = db_path[1:]
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def build_engine(database_url: str, echo: bool = False):
    """Create an async engine with settings suited to the backend."""
    if database_url.startswith("sqlite"):
        _ensure_sqlite_dir(database_url)
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


engine = build_engine(settings.database_url, echo=settings.database_echo)

# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db():
    """Initialize database - create tables if they don't exist."""
    try:
        async with engine.begin() as conn:
            # Import all models to register them with Base
            from lrdesk.models import branch, article, booking, ogpl, audit  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error("Error initializing database", error=str(e))
        raise


async def close_db():
    """Close database connections."""
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager to get an async database session.
    Use this in scripts and services that are not FastAPI endpoints.

    Usage:
        async with get_async_session() as db:
            result = await db.execute(query)
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
