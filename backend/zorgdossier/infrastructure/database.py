"""Database Access — async engine, per-request sessions and SQLAlchemy error mapping.

Invariants:
    - A session that raises is rolled back before the error leaves the context
    - SQLAlchemy failures surface as DatabaseError (503), never as raw driver errors
    - ZorgdossierError raised inside a session passes through unchanged (after rollback)

Design Decisions:
    - One DatabaseSessionManager per process, created by the FastAPI lifespan
    - expire_on_commit=False: routes serialize ORM objects after commit
    - SQLite URLs skip pool sizing: aiosqlite does not accept QueuePool arguments
    - Error mapping is a table ordered most specific first (IntegrityError and
      OperationalError both subclass DBAPIError)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from zorgdossier.core.errors import DatabaseError, ErrorContext, ZorgdossierError

logger = logging.getLogger(__name__)

_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def map_db_error(error: SQLAlchemyError) -> DatabaseError:
    for error_type, message, operation in _ERROR_MAP:
        if isinstance(error, error_type):
            return DatabaseError(message, operation, ErrorContext(operation=operation))
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the engine and hands out sessions that roll back on failure."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False,
        )

    @classmethod
    def from_url(
        cls, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ) -> "DatabaseSessionManager":
        options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options |= {"pool_size": pool_size, "max_overflow": max_overflow, "pool_recycle": 3600}
        return cls(create_async_engine(database_url, **options))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            try:
                yield session
            except ZorgdossierError:
                await session.rollback()
                raise
            except SQLAlchemyError as e:
                await session.rollback()
                mapped = map_db_error(e)
                logger.error(
                    f"{type(e).__name__} during {mapped.operation}: {e}",
                    extra={"operation": mapped.operation},
                )
                raise mapped from e

    async def health_check(self) -> bool:
        """True when a trivial query succeeds (readiness probe)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database readiness check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager.from_url(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
