"""Database Session Manager: bounded async connection pool with scoped acquisition.

Invariants:
    - At most pool_size + max_overflow live connections (defaults 10 + 0)
    - Acquisition waits at most pool_timeout seconds, then DatabaseConnectionError
    - Every session is closed on exit (connection returned to the pool), on all paths
    - Every session auto-rolls-back on storage failure (no partial commits leak)
    - All SQLAlchemy exceptions leave this module classified as DBError
    - Constraint violations are logged at WARNING, every other storage failure at ERROR

Design Decisions:
    - One manager per process, injected into the operation services; the module
      singleton only exists for the FastAPI lifespan and the readiness probe
    - expire_on_commit=False: result values are built after commit without lazy loads
    - SQLite opens every transaction with BEGIN IMMEDIATE: writers serialize the
      same way PostgreSQL serializes on the group row lock
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncConnection, AsyncEngine, AsyncSession, async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

import groupchat.models  # noqa: F401
from groupchat.core.errors import ConstraintViolation, DBError
from groupchat.db.base import Base
from groupchat.infrastructure.error_classifier import classify_db_error

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 10
DEFAULT_MAX_OVERFLOW = 0
DEFAULT_POOL_TIMEOUT = 30.0


class DatabaseSessionManager:
    """Manages pooled async connections and sessions with classified failures."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = DEFAULT_POOL_SIZE,
        max_overflow: int = DEFAULT_MAX_OVERFLOW,
        pool_timeout: float = DEFAULT_POOL_TIMEOUT,
    ):
        is_sqlite = database_url.startswith("sqlite")
        self.engine = create_async_engine(
            database_url,
            poolclass=AsyncAdaptedQueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        if is_sqlite:
            _serialize_sqlite_transactions(self.engine)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.max_connections = pool_size + max_overflow

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator[AsyncConnection, None]:
        """Acquire one raw pooled connection for the duration of the block."""
        try:
            async with self.engine.connect() as conn:
                yield conn
        except (SQLAlchemyError, OSError) as e:
            error = classify_db_error(e)
            logger.error(
                f"DB {error.kind.value}: {e}",
                extra={"error_code": error.kind.value},
            )
            raise error from e

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback and classification on storage failure."""
        session = self._session_factory()
        try:
            yield session
        except (SQLAlchemyError, OSError) as e:
            await self._rollback_quietly(session)
            error = classify_db_error(e)
            # Constraint hits are often expected (duplicate name, second join);
            # translate_storage_errors decides whether they are failures
            level = (
                logging.WARNING if isinstance(error, ConstraintViolation)
                else logging.ERROR
            )
            logger.log(
                level,
                f"DB {error.kind.value}: {e}",
                extra={"error_code": error.kind.value},
            )
            raise error from e
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session inside one transaction: commit on success, rollback on any exception."""
        async with self.session() as session:
            async with session.begin():
                yield session

    async def create_schema(self) -> None:
        """Create all tables from ORM metadata (tests and local runs)."""
        async with self.connect() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.commit()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except DBError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    def pool_status(self) -> dict[str, int]:
        """Snapshot of pool usage for the readiness probe."""
        pool = self.engine.pool
        return {
            "size": pool.size(),
            "checked_out": pool.checkedout(),
            "max_connections": self.max_connections,
        }

    async def dispose(self) -> None:
        await self.engine.dispose()

    @staticmethod
    async def _rollback_quietly(session: AsyncSession) -> None:
        try:
            await session.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"DB rollback failed: {e}")


def _serialize_sqlite_transactions(engine: AsyncEngine) -> None:
    """Take the SQLite write lock at BEGIN and enforce foreign keys."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.dispose()
        db_manager = None


def get_db_manager() -> DatabaseSessionManager:
    """Return the process-wide manager; fails loudly before startup."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager
