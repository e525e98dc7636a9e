# newsletter/core/database.py
"""Database connection and session management using SQLAlchemy."""
import asyncio
import logging
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings
from .exceptions import NewsletterError, StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine, with pool tuning only where the driver supports it"""
    options = {
        "pool_pre_ping": True,
        "echo": False,
    }
    if database_url.startswith("postgresql"):
        options.update(
            pool_size=15,
            max_overflow=25,
            pool_timeout=60,
            pool_recycle=1800,
            connect_args={
                "command_timeout": 60,
                "server_settings": {
                    "application_name": "newsletter_api",
                    "statement_timeout": "30s",
                    "idle_in_transaction_session_timeout": "60s",
                    "lock_timeout": "10s",
                },
            },
        )
    return create_async_engine(database_url, **options)


engine = build_engine(settings.database_url)

# Regular session factory for API requests
AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
    autocommit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for API requests with proper error handling"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()


async def _safe_rollback(session: AsyncSession):
    try:
        await session.rollback()
    except Exception as e:
        logger.error(f"Rollback after failed unit of work also failed: {e}")


async def run_unit_of_work(
    session: AsyncSession,
    work: Callable[[], Awaitable[T]],
    timeout: Optional[float] = None,
) -> T:
    """Run one store-facing unit of work under a timeout.

    Domain errors roll the session back and propagate unchanged. Timeouts and
    transport failures roll back and surface as ``StoreUnavailable`` so that no
    half-written row or ledger entry is ever committed.
    """
    limit = timeout if timeout is not None else settings.store_timeout_seconds
    try:
        return await asyncio.wait_for(work(), timeout=limit)
    except NewsletterError:
        await _safe_rollback(session)
        raise
    except asyncio.TimeoutError as e:
        await _safe_rollback(session)
        raise StoreUnavailable(f"Store operation timed out after {limit}s") from e
    except (OperationalError, InterfaceError, PoolTimeoutError, ConnectionError) as e:
        await _safe_rollback(session)
        logger.error(f"Store failure: {e}")
        raise StoreUnavailable("Persistence layer unavailable") from e
    except Exception:
        await _safe_rollback(session)
        raise


async def health_check_db() -> bool:
    """Fast health check with timeout handling"""
    try:
        async with engine.connect() as conn:
            await asyncio.wait_for(conn.execute(text("SELECT 1")), timeout=5)
            return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def close_db_connections():
    """Properly close all database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
