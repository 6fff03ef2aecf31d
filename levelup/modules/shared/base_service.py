"""
Base Service Foundation

Purpose
-------
Foundation for every domain service. Services implement the game rules,
open units of work, raise domain exceptions and emit domain events.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Config access (`get_config`, required keys raise `ConfigurationError`)
- A unit-of-work helper that joins a caller's session or opens a new
  transaction
- Deferred event emission: events emitted inside a unit of work are
  published only after it commits, and dropped if it rolls back
- An injectable clock and random source, so day boundaries and random
  template picks are controllable in tests
- Validation helpers

Usage
-----
    class EconomyService(BaseService):
        async def unlock_class(self, class_id: str, *, session=None):
            self.log_operation("unlock_class", class_id=class_id)
            async with self._unit_of_work(session) as s:
                ...
                await self.emit_event("class.unlocked", {"class_id": class_id})
"""

from __future__ import annotations

import random
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import TYPE_CHECKING, Any, AsyncGenerator, Callable, Dict, List, Optional, Tuple

from levelup.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

    from levelup.core.config.manager import ConfigManager
    from levelup.core.database.service import DatabaseService
    from levelup.core.event.bus import EventBus

Clock = Callable[[], datetime]

# Events queued by the unit of work running in the current task.
_pending_events: ContextVar[Optional[List[Tuple[str, Dict[str, Any]]]]] = ContextVar(
    "levelup_pending_events", default=None
)


class BaseService:
    """
    Base class for all domain services.

    Args:
        database: Storage service providing sessions and transactions
        config_manager: Balance configuration
        event_bus: Event bus for cross-module communication
        logger: Logger instance
        clock: Returns "now" as naive local time (default `datetime.now`)
        rng: Random source for template selection (default: module random)
    """

    def __init__(
        self,
        database: DatabaseService,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        *,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._db = database
        self._config = config_manager
        self._events = event_bus
        self.log = logger
        self._clock: Clock = clock or datetime.now
        self._rng: random.Random = rng or random.Random()

    # =========================================================================
    # Time
    # =========================================================================

    def now(self) -> datetime:
        return self._clock()

    # =========================================================================
    # Units of work
    # =========================================================================

    @asynccontextmanager
    async def _unit_of_work(
        self, session: Optional[AsyncSession] = None
    ) -> AsyncGenerator[AsyncSession, None]:
        """
        Join the caller's session, or open a new transaction.

        When a new transaction is opened, events emitted inside it are
        published after commit.
        """
        if session is not None:
            yield session
            return

        pending: List[Tuple[str, Dict[str, Any]]] = []
        token = _pending_events.set(pending)
        try:
            async with self._db.get_transaction() as new_session:
                yield new_session
        finally:
            _pending_events.reset(token)

        for event_type, data in pending:
            await self._events.publish(event_type, data)

    @asynccontextmanager
    async def _read(
        self, session: Optional[AsyncSession] = None
    ) -> AsyncGenerator[AsyncSession, None]:
        """Join the caller's session, or open a read session."""
        if session is not None:
            yield session
            return

        async with self._db.get_session() as new_session:
            yield new_session

    # =========================================================================
    # Config
    # =========================================================================

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Retrieve a balance value.

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(key, f"Required configuration key '{key}' is missing")
        return value

    # =========================================================================
    # Events
    # =========================================================================

    async def emit_event(self, event_type: str, data: Dict[str, Any]) -> None:
        """
        Emit a domain event.

        Inside a unit of work the event is queued until commit; otherwise it
        is published immediately.
        """
        pending = _pending_events.get()
        if pending is not None:
            pending.append((event_type, dict(data)))
            return
        await self._events.publish(event_type, dict(data))

    # =========================================================================
    # Logging
    # =========================================================================

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(self, operation: str, error: Exception, **context: Any) -> None:
        self.log.error(
            f"Service error during {operation}: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_positive_int(self, value: int, name: str) -> None:
        from levelup.modules.shared.exceptions import ValidationError

        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationError(name, f"{name} must be a positive integer, got {value}")

    def validate_non_negative_int(self, value: int, name: str) -> None:
        from levelup.modules.shared.exceptions import ValidationError

        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(name, f"{name} must be a non-negative integer, got {value}")

    def validate_non_empty_str(self, value: str, name: str) -> None:
        from levelup.modules.shared.exceptions import ValidationError

        if not isinstance(value, str) or not value.strip():
            raise ValidationError(name, f"{name} must be a non-empty string")
