"""Database Connection and Session Management"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.core.exceptions import ConflictError, StoreError


def normalize_database_url(url: str) -> str:
    """Switch plain driver URLs to their async drivers (asyncpg / aiosqlite)."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def engine_options(url: str) -> Dict[str, Any]:
    """Connection pool options for the given backend."""
    if url.startswith("sqlite"):
        # Pool sizing does not apply to SQLite; one shared connection keeps :memory: usable
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
    }


database_url = normalize_database_url(settings.DATABASE_URL)

engine = create_async_engine(
    database_url,
    echo=settings.DEBUG,
    future=True,
    **engine_options(database_url),
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for declarative models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Services commit their own units of work; anything left pending when the
    request finishes is committed here, and rolled back on error.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def commit_or_raise(db: AsyncSession, conflict_message: str = "Record was modified concurrently") -> None:
    """
    Commit the session, translating persistence failures into domain errors.

    Raises:
        ConflictError: unique constraint hit or stale versioned write
        StoreError: any other database failure
    """
    try:
        await db.commit()
    except (IntegrityError, StaleDataError) as e:
        await db.rollback()
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreError(f"Database write failed: {type(e).__name__}") from e


async def init_db() -> None:
    """Initialize database tables (for development only)"""
    import app.models  # noqa: F401 - register all tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections"""
    await engine.dispose()
