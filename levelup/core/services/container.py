"""
Service Container
=================

Purpose
-------
Explicit dependency wiring for every domain service. Services are created
once, in dependency order, and share one database service, balance config,
event bus, clock and random source.

Responsibilities
----------------
- Construct domain services with their collaborators
- Own the initialization guard and the maintenance scheduler instance
- Expose services as properties
- Minimal observability (per-service construction timing, health snapshot)

Non-Responsibilities
--------------------
- Infrastructure start/stop order (ApplicationContext)
- Business logic

Dependency Order
----------------
    progression, player, catalog
    -> generation
    -> economy (generation)
    -> weekly (progression, economy)
    -> quests (progression, economy, weekly)
    -> seeding (catalog, generation) -> guard
    -> scheduler (guard, economy, generation, weekly)
"""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from levelup.core.logging.logger import get_logger
from levelup.modules.catalog.service import QuestCatalogService
from levelup.modules.economy.service import EconomyService
from levelup.modules.maintenance.guard import InitializationGuard
from levelup.modules.maintenance.scheduler import MaintenanceScheduler
from levelup.modules.maintenance.seeding import SeedService
from levelup.modules.player.service import PlayerService
from levelup.modules.progression.service import ProgressionService
from levelup.modules.quests.generation import QuestGenerationService
from levelup.modules.quests.service import QuestService
from levelup.modules.weekly.service import WeeklyBundleService

if TYPE_CHECKING:
    from logging import Logger

    from levelup.core.config.manager import ConfigManager
    from levelup.core.database.service import DatabaseService
    from levelup.core.event.bus import EventBus
    from levelup.modules.catalog.source import CatalogSource
    from levelup.modules.shared.base_service import Clock

SERVICE_COUNT = 9


class ServiceContainer:
    """
    Dependency injection container for all domain services.

    Usage:
        container = ServiceContainer(database, config_manager, event_bus, logger,
                                     catalog=PackagedCatalog())
        await container.initialize()
        await container.quests.complete_quest(quest_id)
    """

    def __init__(
        self,
        database: DatabaseService,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
        *,
        catalog: CatalogSource,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        maintenance_interval_seconds: Optional[float] = None,
    ) -> None:
        self._database = database
        self._config_manager = config_manager
        self._event_bus = event_bus
        self._logger = logger
        self._catalog_source = catalog
        self._clock = clock
        self._rng = rng or random.Random()
        self._maintenance_interval = maintenance_interval_seconds

        self._progression: Optional[ProgressionService] = None
        self._player: Optional[PlayerService] = None
        self._catalog: Optional[QuestCatalogService] = None
        self._generation: Optional[QuestGenerationService] = None
        self._economy: Optional[EconomyService] = None
        self._weekly: Optional[WeeklyBundleService] = None
        self._quests: Optional[QuestService] = None
        self._seeding: Optional[SeedService] = None
        self._scheduler: Optional[MaintenanceScheduler] = None
        self._guard: Optional[InitializationGuard] = None

        self._initialized = False
        self._service_init_times: Dict[str, float] = {}
        self._init_start: Optional[float] = None
        self._init_end: Optional[float] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        """Construct every service. Call after the database is initialized."""
        if self._initialized:
            self._logger.warning("ServiceContainer already initialized")
            return

        self._init_start = time.perf_counter()
        self._logger.info("Service container initialization starting...")

        self._progression = self._create_service("progression", ProgressionService)
        self._player = self._create_service("player", PlayerService)
        self._catalog = self._create_service(
            "catalog", QuestCatalogService, catalog=self._catalog_source
        )
        self._generation = self._create_service("generation", QuestGenerationService)
        self._economy = self._create_service(
            "economy", EconomyService, generation=self._generation
        )
        self._weekly = self._create_service(
            "weekly",
            WeeklyBundleService,
            progression=self._progression,
            economy=self._economy,
        )
        self._quests = self._create_service(
            "quests",
            QuestService,
            progression=self._progression,
            economy=self._economy,
            weekly=self._weekly,
        )
        self._seeding = self._create_service(
            "seeding",
            SeedService,
            catalog=self._catalog,
            generation=self._generation,
        )
        self._guard = InitializationGuard(
            self._seeding.seed_if_needed,
            get_logger(f"{InitializationGuard.__module__}.InitializationGuard"),
        )
        self._scheduler = self._create_service(
            "scheduler",
            MaintenanceScheduler,
            guard=self._guard,
            economy=self._economy,
            generation=self._generation,
            weekly=self._weekly,
            interval_seconds=self._maintenance_interval,
        )

        self._initialized = True
        self._init_end = time.perf_counter()
        self._logger.info(
            "Service container initialized",
            extra={
                "service_count": len(self._service_init_times),
                "duration_ms": (self._init_end - self._init_start) * 1000,
            },
        )

    def _create_service(self, name: str, cls: type, **dependencies: Any) -> Any:
        """Construct one service with the shared collaborators plus ``dependencies``."""
        start = time.perf_counter()

        try:
            instance = cls(
                self._database,
                self._config_manager,
                self._event_bus,
                get_logger(f"{cls.__module__}.{cls.__name__}"),
                clock=self._clock,
                rng=self._rng,
                **dependencies,
            )
        except Exception:
            self._logger.error(f"Failed to initialize {name}", exc_info=True)
            raise

        duration = time.perf_counter() - start
        self._service_init_times[name] = duration
        self._logger.debug(f"Initialized {name} in {duration:.3f}s")
        return instance

    async def shutdown(self) -> None:
        """Stop the scheduler if it is running."""
        if not self._initialized:
            return

        self._logger.info("Shutting down service container...")
        if self._scheduler is not None and self._scheduler.is_running:
            await self._scheduler.stop()

        self._initialized = False
        self._logger.info("Service container shut down")

    async def health_check(self) -> Dict[str, Any]:
        return {
            "initialized": self._initialized,
            "service_count": len(self._service_init_times),
            "total_init_time_seconds": (
                round(self._init_end - self._init_start, 3)
                if self._init_start and self._init_end
                else None
            ),
            "all_services_available": self._initialized
            and len(self._service_init_times) == SERVICE_COUNT,
            "store_initialized": self._guard.is_initialized if self._guard else False,
            "scheduler_running": self._scheduler.is_running if self._scheduler else False,
        }

    # ========================================================================
    # Services
    # ========================================================================

    def _require(self, service: Optional[Any], name: str) -> Any:
        if service is None:
            raise RuntimeError(f"{name} not initialized; call ServiceContainer.initialize()")
        return service

    @property
    def progression(self) -> ProgressionService:
        return self._require(self._progression, "ProgressionService")

    @property
    def player(self) -> PlayerService:
        return self._require(self._player, "PlayerService")

    @property
    def catalog(self) -> QuestCatalogService:
        return self._require(self._catalog, "QuestCatalogService")

    @property
    def generation(self) -> QuestGenerationService:
        return self._require(self._generation, "QuestGenerationService")

    @property
    def economy(self) -> EconomyService:
        return self._require(self._economy, "EconomyService")

    @property
    def weekly(self) -> WeeklyBundleService:
        return self._require(self._weekly, "WeeklyBundleService")

    @property
    def quests(self) -> QuestService:
        return self._require(self._quests, "QuestService")

    @property
    def seeding(self) -> SeedService:
        return self._require(self._seeding, "SeedService")

    @property
    def guard(self) -> InitializationGuard:
        return self._require(self._guard, "InitializationGuard")

    @property
    def scheduler(self) -> MaintenanceScheduler:
        return self._require(self._scheduler, "MaintenanceScheduler")
