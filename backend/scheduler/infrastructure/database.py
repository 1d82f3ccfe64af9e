"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - IntegrityError maps to ConflictError; connectivity, driver and timeout
      failures map to TransientStorageError (core/errors.py)
    - Scheduler errors raised inside a session pass through unchanged

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan opens it once
      and disposes the engine on shutdown; never rebuilt per request
    - expire_on_commit=False: prevents lazy-load issues in async context
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy import text

from scheduler.core.errors import (
    ConflictError, SchedulerError, TransientStorageError,
)

logger = logging.getLogger(__name__)


def translate_db_error(exc: Exception) -> SchedulerError:
    """Map a driver/ORM failure onto the scheduler error taxonomy."""
    if isinstance(exc, IntegrityError):
        return ConflictError("Resource already exists")
    if isinstance(exc, (PoolTimeoutError, TimeoutError)):
        return TransientStorageError("Timed out waiting for the database", "timeout")
    if isinstance(exc, OperationalError):
        return TransientStorageError("Connection or operational error", "execute")
    if isinstance(exc, DBAPIError):
        return TransientStorageError("Database driver error", "query")
    return TransientStorageError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_timeout: int = 10,
        statement_timeout_ms: int | None = None,
    ):
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=3600,
            )
            if statement_timeout_ms:
                engine_kwargs["connect_args"] = {
                    "server_settings": {"statement_timeout": str(statement_timeout_ms)},
                }
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SchedulerError:
            await session.rollback()
            raise
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise translate_db_error(e) from e
        except (SQLAlchemyError, TimeoutError) as e:
            await session.rollback()
            logger.error(f"DB error ({type(e).__name__}): {e}")
            raise translate_db_error(e) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager:
        await db_manager.close()
        db_manager = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
