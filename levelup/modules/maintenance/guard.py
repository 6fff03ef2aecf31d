"""
Single-flight first-run initialization.

The first caller starts seeding as a task; every concurrent caller awaits
that same task. After success the finished task is kept, so later calls
return at once. After a failure the handle is cleared and the error is
raised to every caller that was waiting, so a later call can retry.
"""

from __future__ import annotations

import asyncio
from logging import Logger
from typing import Awaitable, Callable, Optional

from levelup.core.exceptions import LevelUpInfrastructureException, SeedingError
from levelup.modules.shared.exceptions import LevelUpDomainException


class InitializationGuard:
    """
    Owns the in-flight initialization handle.

    Args:
        initializer: Coroutine function performing the seeding; returns True
            when it seeded an empty store
        logger: Logger instance
    """

    def __init__(self, initializer: Callable[[], Awaitable[bool]], logger: Logger) -> None:
        self._initializer = initializer
        self.log = logger
        self._task: Optional[asyncio.Task[bool]] = None
        self.runs = 0

    @property
    def is_initialized(self) -> bool:
        task = self._task
        return task is not None and task.done() and not task.cancelled() and task.exception() is None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def ensure_initialized(self) -> bool:
        """
        Run initialization at most once.

        Returns:
            True if this call's shared run seeded the store

        Raises:
            SeedingError: If initialization failed (other LevelUp errors are
                re-raised unchanged)
        """
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        task = self._task

        try:
            return await asyncio.shield(task)
        except Exception:
            if self._task is task and task.done():
                self._task = None
            raise

    def reset(self) -> None:
        """Forget a completed initialization (after a storage reset)."""
        if self.in_flight:
            raise RuntimeError("Cannot reset initialization guard while initialization is running")
        self._task = None

    async def _run(self) -> bool:
        self.runs += 1
        try:
            return await self._initializer()
        except (LevelUpDomainException, LevelUpInfrastructureException):
            self.log.error("First-run initialization failed", exc_info=True)
            raise
        except Exception as exc:
            self.log.error(
                "First-run initialization failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            raise SeedingError(str(exc)) from exc
