"""
Database Service - storage collaborator for the LevelUp engine

Purpose
-------
Own the async SQLAlchemy engine and hand out sessions. This is the storage
contract the engine relies on: get/add/update/delete per entity, indexed
equality queries, and atomic multi-record units of work.

Responsibilities
----------------
- Create and dispose one AsyncEngine (SQLite through aiosqlite by default).
- `get_transaction()`: one atomic unit of work, commit on success, rollback
  on any exception.
- `get_session()`: read access that still observes the unit-of-work lock.
- Serialize every unit of work through one process-wide `asyncio.Lock`, so
  read-then-write sequences on shared records (gold, reroll counter, level
  and XP, instance content) never interleave.
- Schema bootstrap (`create_all`) and full reset (`reset`) for operator
  recovery.
- Cheap `health_check()`.

Non-Responsibilities
--------------------
- Domain logic or event emission.
- Migrations (schema is created from model metadata).

Architecture Notes
------------------
**Transaction Model**:
- Never call `session.commit()` in service code.
- Units of work do not nest. A service that is handed a `session` must do its
  work inside that session; opening a second transaction from inside one
  raises `RuntimeError` instead of deadlocking on the lock.

**In-memory databases** (`sqlite+aiosqlite://` or `:memory:`) use a
StaticPool so every session sees the same connection.

Usage Example
-------------
>>> db = DatabaseService("sqlite+aiosqlite:///levelup.db")
>>> await db.initialize()
>>> await db.create_all()
>>> async with db.get_transaction() as session:
...     user = await session.get(User, "player")
...     user.gold += 10
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from levelup.core.config.config import Config
from levelup.core.database.base import Base
from levelup.core.exceptions import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
)
from levelup.core.logging.logger import get_logger

logger = get_logger(__name__)

# Set while the current task is inside a unit of work.
_in_unit_of_work: ContextVar[bool] = ContextVar("levelup_in_unit_of_work", default=False)


class DatabaseService:
    """
    Async engine and session management.

    Public API
    ----------
    **Lifecycle**: initialize(), shutdown(), create_all(), reset()
    **Sessions**: get_session(), get_transaction()
    **Utilities**: health_check(), is_initialized
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        self._url: str = url or Config.DATABASE_URL
        self._echo: bool = Config.DATABASE_ECHO if echo is None else echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._init_lock = asyncio.Lock()
        self._unit_lock = asyncio.Lock()

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @property
    def url_scheme(self) -> str:
        return self._url.split(":", 1)[0] if ":" in self._url else "unknown"

    @property
    def is_memory(self) -> bool:
        return ":memory:" in self._url or self._url.rstrip("/").endswith(":")

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        """
        Create the engine and session factory.

        Idempotent: a second call while initialized is a no-op.

        Raises
        ------
        DatabaseInitializationError
            If the URL is empty or engine creation fails.
        """
        async with self._init_lock:
            if self._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            if not self._url:
                raise DatabaseInitializationError("DATABASE_URL must be a non-empty string")

            logger.info("Initializing DatabaseService", extra={"url_scheme": self.url_scheme})

            engine_kwargs: dict[str, Any] = {"echo": self._echo}
            if self.is_memory:
                engine_kwargs.update(
                    {
                        "poolclass": StaticPool,
                        "connect_args": {"check_same_thread": False},
                    }
                )

            try:
                self._engine = create_async_engine(self._url, **engine_kwargs)
            except Exception as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}",
                    details={"url_scheme": self.url_scheme},
                ) from exc

            self._session_factory = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

            logger.info(
                "DatabaseService initialized successfully",
                extra={"url_scheme": self.url_scheme, "in_memory": self.is_memory},
            )

    async def shutdown(self) -> None:
        """Dispose the engine. Safe to call repeatedly."""
        async with self._init_lock:
            if self._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")
            try:
                await self._engine.dispose()
            finally:
                self._engine = None
                self._session_factory = None
            logger.info("DatabaseService shutdown complete")

    # ========================================================================
    # Schema
    # ========================================================================

    async def create_all(self) -> None:
        """Create every table registered on `Base.metadata` (no-op for existing ones)."""
        engine = self._require_engine()
        async with self._unit_lock:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", extra={"tables": len(Base.metadata.tables)})

    async def reset(self) -> None:
        """
        Drop and recreate every table.

        Operator recovery path for storage left unusable by a failed first run.
        All user progress is lost.
        """
        engine = self._require_engine()
        async with self._unit_lock:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.drop_all)
                await conn.run_sync(Base.metadata.create_all)
        logger.warning("Database reset: all tables dropped and recreated")

    # ========================================================================
    # Health Check
    # ========================================================================

    async def health_check(self) -> bool:
        """Run `SELECT 1`; never raises."""
        if self._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            logger.error("DatabaseService operation attempted before initialization")
            raise DatabaseNotInitializedError()
        return self._engine

    def _require_factory(self) -> async_sessionmaker[AsyncSession]:
        self._require_engine()
        assert self._session_factory is not None
        return self._session_factory

    @staticmethod
    def _guard_nesting() -> None:
        if _in_unit_of_work.get():
            raise RuntimeError(
                "Nested unit of work: pass the active session down instead of "
                "opening a new transaction"
            )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Read session without automatic commit.

        Holds the unit-of-work lock so reads never observe a half-applied
        write.
        """
        factory = self._require_factory()
        self._guard_nesting()

        async with self._unit_lock:
            token = _in_unit_of_work.set(True)
            try:
                async with factory() as session:
                    yield session
            finally:
                _in_unit_of_work.reset(token)

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in one atomic transaction.

        Commits on normal exit; rolls back and re-raises on any exception.
        """
        factory = self._require_factory()
        self._guard_nesting()

        async with self._unit_lock:
            token = _in_unit_of_work.set(True)
            start = time.perf_counter()
            try:
                async with factory() as session:
                    try:
                        yield session
                        await session.commit()
                    except Exception as exc:
                        await session.rollback()
                        log = logger.error if isinstance(exc, DBAPIError) else logger.debug
                        log(
                            "Transaction rolled back",
                            extra={
                                "error": str(exc),
                                "error_type": type(exc).__name__,
                                "duration_ms": (time.perf_counter() - start) * 1000.0,
                            },
                            exc_info=isinstance(exc, DBAPIError),
                        )
                        raise
                logger.debug(
                    "Transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )
            finally:
                _in_unit_of_work.reset(token)
