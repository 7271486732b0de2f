"""
Database connection and session management for the embedsearch backend.

Engine and session factory are created lazily so that an unreachable or
misconfigured registry only surfaces when a lookup actually touches it.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import get_settings_instance
from .exceptions import DatabaseConnectionError
from .logging import get_logger

logger = get_logger(__name__)

# Create declarative base
Base = declarative_base()

# Global async engine and session factory - lazy initialization
_async_engine: AsyncEngine | None = None
_AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def _describe_url(database_url: str) -> str:
    """Return the host/database part of a URL, without credentials."""
    return database_url.split("@", 1)[1] if "@" in database_url else database_url.split("://", 1)[0]


def get_database_url() -> str:
    settings = get_settings_instance()
    if not settings.database_url:
        raise DatabaseConnectionError("EMBEDSEARCH_DATABASE_URL is not set")
    return settings.database_url


def get_async_engine() -> AsyncEngine:
    global _async_engine  # noqa: PLW0603
    if _async_engine is None:
        try:
            database_url = get_database_url()
            settings = get_settings_instance()
            logger.debug("Creating database engine", extra={"database": _describe_url(database_url)})

            engine_kwargs = {"pool_pre_ping": True, "echo": False}
            if not database_url.startswith("sqlite"):
                engine_kwargs.update(
                    pool_size=settings.database_pool_size,
                    max_overflow=settings.database_max_overflow,
                    pool_timeout=settings.database_pool_timeout,
                    pool_recycle=settings.database_pool_recycle,
                )
            _async_engine = create_async_engine(database_url, **engine_kwargs)
        except DatabaseConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to create async database engine: {e}")
            raise DatabaseConnectionError(f"engine creation: {e}") from e
    return _async_engine


def get_async_session_local() -> async_sessionmaker[AsyncSession]:
    global _AsyncSessionLocal  # noqa: PLW0603
    if _AsyncSessionLocal is None:
        engine = get_async_engine()
        _AsyncSessionLocal = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
            class_=AsyncSession,
        )
    return _AsyncSessionLocal


def open_session() -> AsyncSession:
    """Open a new session; engine creation failures surface here."""
    return get_async_session_local()()


async def init_db() -> None:
    """Create registry tables and optionally seed demo plugin records."""
    from ..models.registry import register_all_models

    register_all_models()
    engine = get_async_engine()
    logger.debug("Initializing database tables", extra={"database": _describe_url(get_database_url())})

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized successfully")

    if get_settings_instance().seed_demo_plugins:
        from ..services.demo_seed import seed_demo_plugins

        async with get_async_session_local()() as session:
            await seed_demo_plugins(session)


async def close_db() -> None:
    global _async_engine, _AsyncSessionLocal  # noqa: PLW0603
    if _async_engine is None:
        return
    try:
        await _async_engine.dispose()
        logger.debug("Database connections closed")
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")
    finally:
        _async_engine = None
        _AsyncSessionLocal = None


async def check_db_connection() -> bool:
    """Check if database connection is working."""
    try:
        engine = get_async_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
