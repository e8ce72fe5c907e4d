"""Database Session Manager — async engine, sessions that roll back on failure, schema bootstrap.

Invariants:
    - A session that raises is rolled back and closed before the error leaves
    - SQLAlchemy errors leave this module only as DatabaseError (core/errors.py)
    - One manager per process, created by the FastAPI lifespan via init_db()

Design Decisions:
    - Error mapping is a table walked in order: most specific SQLAlchemy class first
    - SQLite URLs skip pool sizing: aiosqlite uses its own pool class
    - expire_on_commit=False: rows stay readable after commit without lazy IO
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from address_capture.core.errors import DatabaseError
from address_capture.db.base import Base
import address_capture.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)

# (exception class, user-safe message, operation)
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def _as_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for exc_type, message, operation in _ERROR_MAP:
        if isinstance(exc, exc_type):
            return DatabaseError(message, operation)
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine and hands out sessions."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **options)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            error = _as_database_error(e)
            logger.error(
                f"{type(e).__name__} during {error.operation}: {e}",
                extra={"error_code": error.code, "operation": error.operation},
            )
            raise error from e
        finally:
            await session.close()

    async def create_schema(self) -> None:
        """Create missing tables. Deployed databases are migrated with alembic instead."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


def get_db_manager() -> DatabaseSessionManager:
    """FastAPI dependency for the initialized session manager."""
    if db_manager is None:
        raise RuntimeError("Database not initialized")
    return db_manager
