"""
Maintenance Scheduler
=====================

Purpose
-------
The only background mutator. On a fixed interval, on every app-foreground
event and once at startup it checks whether a day or week boundary has
passed since the player was last active and regenerates content.

Tick
----
1. Ensure first-run initialization (shared single-flight guard)
2. New day: reset the reroll counter, regenerate Daily quests
3. New week: regenerate the weekly bundle; otherwise generate one if the
   player is eligible and none was generated this week
4. Stamp `last_active`

Steps 2-4 run in one unit of work.

Design Notes
------------
- Ticks never overlap: a tick fired while another is running is skipped.
- Tick failures are logged and swallowed; the interval loop keeps running
  and the next tick retries.
- `stop()` cancels the interval task and unsubscribes the foreground
  listener.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Dict, Optional

from levelup.core.logging.logger import LogContext, get_logger
from levelup.database.models.core.user import User
from levelup.modules.player.service import UserRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.calendar import is_new_day, is_new_week
from levelup.modules.shared.constants import EVENT_APP_FOREGROUND, EVENT_TICK_COMPLETED

if TYPE_CHECKING:
    from levelup.core.event.types import EventPayload
    from levelup.modules.economy.service import EconomyService
    from levelup.modules.maintenance.guard import InitializationGuard
    from levelup.modules.quests.generation import QuestGenerationService
    from levelup.modules.weekly.service import WeeklyBundleService


class MaintenanceScheduler(BaseService):
    """
    Calendar-driven regeneration.

    Public Methods
    --------------
    - start() / stop() -> Interval task and foreground listener lifecycle
    - tick() -> One maintenance pass (skipped if one is running)
    """

    def __init__(
        self,
        database: Any,
        config_manager: Any,
        event_bus: Any,
        logger: Any,
        *,
        guard: InitializationGuard,
        economy: EconomyService,
        generation: QuestGenerationService,
        weekly: WeeklyBundleService,
        interval_seconds: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(database, config_manager, event_bus, logger, **kwargs)
        self._guard = guard
        self._economy = economy
        self._generation = generation
        self._weekly = weekly
        self._interval = float(
            interval_seconds
            if interval_seconds is not None
            else self.get_config("maintenance.interval_seconds", default=60)
        )
        self._user_repo = UserRepository(
            model_class=User,
            logger=get_logger(f"{__name__}.UserRepository"),
        )
        self._tick_lock = asyncio.Lock()
        self._interval_task: Optional[asyncio.Task[None]] = None
        self._listener_id: Optional[str] = None
        self.ticks_run = 0
        self.ticks_skipped = 0

    @property
    def is_running(self) -> bool:
        return self._interval_task is not None and not self._interval_task.done()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start(self) -> None:
        """Run one tick, then start the interval loop and the foreground listener."""
        if self.is_running:
            self.log.debug("Maintenance scheduler already running")
            return

        self._listener_id = self._events.subscribe(
            EVENT_APP_FOREGROUND,
            self._on_foreground,
            identifier=f"maintenance_scheduler_{id(self)}",
        )
        await self.tick()
        self._interval_task = asyncio.create_task(
            self._interval_loop(), name="levelup-maintenance"
        )
        self.log.info(
            "Maintenance scheduler started",
            extra={"interval_seconds": self._interval},
        )

    async def stop(self) -> None:
        """Cancel the interval loop and unsubscribe the foreground listener."""
        if self._listener_id is not None:
            self._events.unsubscribe(EVENT_APP_FOREGROUND, self._listener_id)
            self._listener_id = None

        task, self._interval_task = self._interval_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.log.info("Maintenance scheduler stopped")

    async def _interval_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick()

    async def _on_foreground(self, payload: EventPayload) -> None:
        await self.tick()

    # ========================================================================
    # Tick
    # ========================================================================

    async def tick(self) -> Optional[Dict[str, Any]]:
        """
        Run one maintenance pass.

        Returns:
            Dict with keys new_day, new_week, weekly_generated, or None when
            the tick was skipped or failed
        """
        if self._tick_lock.locked():
            self.ticks_skipped += 1
            self.log.debug("Maintenance tick skipped: previous tick still running")
            return None

        async with self._tick_lock:
            self.ticks_run += 1
            self.log.debug("Maintenance tick", extra={"tick": self.ticks_run})
            try:
                async with LogContext(operation="maintenance_tick", component="maintenance"):
                    await self._guard.ensure_initialized()
                    result = await self._run_maintenance()
            except Exception as exc:
                self.log.error(
                    f"Maintenance tick failed: {exc}",
                    extra={
                        "tick": self.ticks_run,
                        "error_type": type(exc).__name__,
                        "error_message": str(exc),
                    },
                    exc_info=True,
                )
                return None

        await self.emit_event(EVENT_TICK_COMPLETED, dict(result))
        return result

    async def _run_maintenance(self) -> Dict[str, Any]:
        async with self._unit_of_work() as s:
            user = await self._user_repo.get_player(s, for_update=True)
            now = self.now()
            new_day = is_new_day(user.last_active, now=now)
            new_week = is_new_week(user.last_active, now=now)

            if new_day:
                self.log.info(
                    "Day boundary passed: regenerating Daily quests",
                    extra={"last_active": user.last_active.isoformat()},
                )
                await self._economy.reset_daily_rerolls(session=s)
                await self._generation.generate_daily_quests(session=s)

            if new_week:
                self.log.info("Week boundary passed: regenerating weekly bundle")
                result = await self._weekly.generate_weekly_quests(session=s)
                weekly_generated = bool(result["generated"])
            else:
                weekly_generated = await self._weekly.ensure_weekly_bundle(session=s)

            user.last_active = now

            return {
                "new_day": new_day,
                "new_week": new_week,
                "weekly_generated": weekly_generated,
            }
