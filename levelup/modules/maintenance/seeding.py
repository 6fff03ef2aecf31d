"""
First-run seeding.

Creates the player, one class per catalog class, the catalog templates and
the first Daily quests, all in one unit of work. A store that already has a
player is left untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import PLAYER_ID, User
from levelup.modules.player.service import UserRepository
from levelup.modules.progression.service import CharacterClassRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.constants import BASE_DAILY_SLOTS, MIN_LEVEL
from levelup.modules.shared.formulas import xp_to_next_level

if TYPE_CHECKING:
    from levelup.modules.catalog.service import QuestCatalogService
    from levelup.modules.quests.generation import QuestGenerationService


class SeedService(BaseService):
    """
    Seeds an empty store.

    Public Methods
    --------------
    - is_seeded() -> Whether the player record exists
    - seed_if_needed() -> Seed an empty store; returns True if it seeded
    """

    def __init__(
        self,
        database: Any,
        config_manager: Any,
        event_bus: Any,
        logger: Any,
        *,
        catalog: QuestCatalogService,
        generation: QuestGenerationService,
        **kwargs: Any,
    ) -> None:
        super().__init__(database, config_manager, event_bus, logger, **kwargs)
        self._catalog = catalog
        self._generation = generation
        self._user_repo = UserRepository(
            model_class=User,
            logger=get_logger(f"{__name__}.UserRepository"),
        )
        self._class_repo = CharacterClassRepository(
            model_class=CharacterClass,
            logger=get_logger(f"{__name__}.CharacterClassRepository"),
        )

    async def is_seeded(self) -> bool:
        async with self._read() as s:
            return await self._user_repo.get(s, PLAYER_ID) is not None

    async def seed_if_needed(self) -> bool:
        async with self._unit_of_work() as s:
            if await self._user_repo.get(s, PLAYER_ID) is not None:
                self.log.debug("Store already initialized")
                return False

            self.log.info("Initializing store for first run")
            now = self.now()

            defaults = self._catalog.catalog.user_defaults()
            starting_gold = int(
                defaults.get("gold", self.get_config("player.starting_gold", required=True))
            )
            class_order: List[str] = list(
                self.get_config("player.default_class_order", required=True)
            )
            starters = set(self.get_config("player.starter_classes", required=True))

            self._user_repo.add(
                s,
                User(
                    id=PLAYER_ID,
                    gold=starting_gold,
                    total_xp=0,
                    daily_reroll_count=0,
                    last_reroll_reset=now,
                    created_at=now,
                    last_active=now,
                    last_weekly_generated=None,
                    class_order=class_order,
                ),
            )

            class_ids = self._catalog.class_ids()
            self._class_repo.add_many(
                s,
                [
                    CharacterClass(
                        id=class_id,
                        name=class_id,
                        level=MIN_LEVEL,
                        current_xp=0,
                        xp_to_next_level=xp_to_next_level(MIN_LEVEL),
                        is_unlocked=class_id in starters,
                        unlocked_at=now if class_id in starters else None,
                        daily_quest_slots=BASE_DAILY_SLOTS,
                        slot3_unlocked=False,
                        slot4_unlocked=False,
                        slot5_unlocked=False,
                    )
                    for class_id in class_ids
                ],
            )
            await self._class_repo.flush(s)

            synced = await self._catalog.sync_catalog(session=s)
            generated = await self._generation.generate_daily_quests(session=s)

            self.log.info(
                "First-run initialization complete",
                extra={
                    "classes": len(class_ids),
                    "templates": synced["added"],
                    "daily_quests": sum(generated.values()),
                    "starting_gold": starting_gold,
                },
            )
            return True
