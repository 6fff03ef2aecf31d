"""
Application Context (Kernel)
============================

Purpose
-------
Start and stop the engine's infrastructure in dependency order and hand the
wired service container to whatever front end drives it.

Responsibilities
----------------
- Install logging and load environment/balance configuration
- Create the storage schema
- Build the EventBus and ServiceContainer
- Run first-run initialization through the shared guard
- Start and stop the maintenance scheduler
- Wipe storage and re-seed on request

Non-Responsibilities
--------------------
- Business logic (domain services)
- Presentation

Initialization Order
--------------------
    1. Logging
    2. ConfigManager
    3. DatabaseService (+ schema)
    4. EventBus
    5. ServiceContainer
    6. First-run initialization
    7. MaintenanceScheduler (optional)

Shutdown Order (Reverse)
------------------------
    1. MaintenanceScheduler / ServiceContainer
    2. EventBus listener clear
    3. DatabaseService
    4. Logging
"""

from __future__ import annotations

import random
import time
from pathlib import Path
from typing import Any, Dict, Optional

from levelup.core.config.config import Config
from levelup.core.config.manager import ConfigManager
from levelup.core.database.service import DatabaseService
from levelup.core.event.bus import EventBus
from levelup.core.logging.logger import get_logger, setup_logging, shutdown_logging
from levelup.core.services.container import ServiceContainer
from levelup.modules.catalog.source import CatalogSource, PackagedCatalog
from levelup.modules.shared.base_service import Clock
from levelup.modules.shared.constants import EVENT_APP_FOREGROUND

logger = get_logger(__name__)


class ApplicationContext:
    """
    Kernel for infrastructure orchestration.

    Usage:
        context = ApplicationContext()
        await context.initialize()
        await context.services.quests.complete_quest(quest_id)
        await context.shutdown()

    Tests pass an in-memory database URL, balance overrides, a fixed catalog,
    a controllable clock and a seeded random source, and usually leave the
    scheduler off.
    """

    def __init__(
        self,
        *,
        database_url: Optional[str] = None,
        config_dir: Optional[Path] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
        catalog: Optional[CatalogSource] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        start_scheduler: bool = True,
        configure_logging: bool = True,
    ) -> None:
        self._database_url = database_url
        self._config_dir = config_dir
        self._config_overrides = config_overrides
        self._catalog_source = catalog
        self._clock = clock
        self._rng = rng
        self._start_scheduler = start_scheduler
        self._configure_logging = configure_logging

        self._config_manager: Optional[ConfigManager] = None
        self._database: Optional[DatabaseService] = None
        self._event_bus: Optional[EventBus] = None
        self._service_container: Optional[ServiceContainer] = None
        self._initialized = False

        logger.debug("ApplicationContext created")

    # ========================================================================
    # Initialization
    # ========================================================================

    async def initialize(self) -> None:
        """
        Initialize all infrastructure in dependency order.

        Raises:
            RuntimeError: If already initialized or initialization fails
        """
        if self._initialized:
            raise RuntimeError("ApplicationContext already initialized")

        if self._configure_logging:
            setup_logging()

        logger.info("=" * 70)
        logger.info("APPLICATION CONTEXT INITIALIZATION")
        logger.info("=" * 70)

        start_time = time.perf_counter()

        try:
            step = time.perf_counter()
            self._config_manager = ConfigManager.load(
                config_dir=self._config_dir, overrides=self._config_overrides
            )
            logger.info("✓ ConfigManager loaded (%.2fms)", _elapsed_ms(step))

            step = time.perf_counter()
            self._database = DatabaseService(self._database_url)
            await self._database.initialize()
            await self._database.create_all()
            logger.info("✓ DatabaseService initialized (%.2fms)", _elapsed_ms(step))

            self._event_bus = EventBus(self._config_manager)
            logger.info("✓ EventBus created")

            step = time.perf_counter()
            self._service_container = ServiceContainer(
                self._database,
                self._config_manager,
                self._event_bus,
                get_logger("levelup.core.services.container"),
                catalog=self._catalog_source or PackagedCatalog(),
                clock=self._clock,
                rng=self._rng,
                maintenance_interval_seconds=Config.MAINTENANCE_INTERVAL_SECONDS,
            )
            await self._service_container.initialize()
            logger.info("✓ ServiceContainer initialized (%.2fms)", _elapsed_ms(step))

            step = time.perf_counter()
            seeded = await self._service_container.guard.ensure_initialized()
            logger.info(
                "✓ Store ready%s (%.2fms)",
                " (seeded)" if seeded else "",
                _elapsed_ms(step),
            )

            if self._start_scheduler:
                await self._service_container.scheduler.start()
                logger.info("✓ MaintenanceScheduler started")

            self._initialized = True

            logger.info("=" * 70)
            logger.info("✓ Application context initialized successfully")
            logger.info("  Total time: %.2fms", _elapsed_ms(start_time))
            logger.info("=" * 70)

        except Exception as exc:
            logger.critical(
                "Application context initialization failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )
            await self._emergency_shutdown()
            raise RuntimeError("Failed to initialize application context") from exc

    # ========================================================================
    # Runtime hooks
    # ========================================================================

    async def notify_foreground(self) -> None:
        """Signal that the app came to the foreground (triggers a maintenance tick)."""
        await self.event_bus.publish(EVENT_APP_FOREGROUND, {"source": "app"})

    async def reset_storage(self) -> None:
        """
        Wipe all persisted state and run first-run initialization again.

        The scheduler is stopped for the duration and restarted afterwards
        if it was running.
        """
        services = self.services
        database = self.database
        was_running = services.scheduler.is_running

        logger.warning("Resetting storage")
        if was_running:
            await services.scheduler.stop()

        await database.reset()
        services.guard.reset()
        await services.guard.ensure_initialized()

        if was_running:
            await services.scheduler.start()
        logger.info("Storage reset complete")

    # ========================================================================
    # Shutdown
    # ========================================================================

    async def shutdown(self) -> None:
        """Shut down in reverse dependency order. Each step logs its own failure."""
        if not self._initialized:
            logger.warning("ApplicationContext not initialized, nothing to shut down")
            return

        logger.info("=" * 70)
        logger.info("APPLICATION CONTEXT SHUTDOWN")
        logger.info("=" * 70)

        if self._service_container:
            try:
                await self._service_container.shutdown()
                logger.info("✓ ServiceContainer shut down")
            except Exception as exc:
                logger.error(
                    "Error shutting down service container",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )

        if self._event_bus:
            try:
                self._event_bus.clear()
                logger.info("✓ EventBus listeners cleared")
            except Exception as exc:
                logger.error(
                    "Error clearing event bus",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )

        if self._database:
            try:
                await self._database.shutdown()
                logger.info("✓ DatabaseService shut down")
            except Exception as exc:
                logger.error(
                    "Error shutting down database",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )

        self._initialized = False
        logger.info("=" * 70)
        logger.info("✓ Application context shutdown complete")
        logger.info("=" * 70)

        if self._configure_logging:
            shutdown_logging()

    async def _emergency_shutdown(self) -> None:
        """Best-effort cleanup after a failed initialization."""
        logger.warning("Performing emergency shutdown")

        if self._service_container:
            try:
                await self._service_container.shutdown()
            except Exception:
                logger.debug("Service container shutdown failed", exc_info=True)

        if self._database:
            try:
                await self._database.shutdown()
            except Exception:
                logger.debug("Database shutdown failed", exc_info=True)

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def services(self) -> ServiceContainer:
        if self._service_container is None:
            raise RuntimeError("ServiceContainer not initialized")
        return self._service_container

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            raise RuntimeError("ConfigManager not initialized")
        return self._config_manager

    @property
    def database(self) -> DatabaseService:
        if self._database is None:
            raise RuntimeError("DatabaseService not initialized")
        return self._database

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            raise RuntimeError("EventBus not initialized")
        return self._event_bus


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
