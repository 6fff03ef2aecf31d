"""
Weekly Bundle Service
=====================

Purpose
-------
The weekly bundle: a set of quests shared across classes, unlocked by
overall progress and paid out as one multiplied reward.

Domain
------
- Eligibility: enough unlocked classes at or above the eligibility level
- Bundle composition: Weekly-type templates first, topped up with random
  Daily-type templates from the whole pool, scaled to the average level of
  unlocked classes
- Collection: gold and XP multiplied, gold to the player, XP split evenly
  (floor) across unlocked classes
- Status read model for the weekly card

Design Notes
------------
- Generation expires the previous bundle before creating the new one. Live
  members still `active` or `completed` at that point become `expired`.
- Collected members move to `collected`, so a bundle pays out once.
- `user.last_weekly_generated` records the last generation; at most one
  bundle is generated per Sunday-anchored week unless a new week starts.
- Weekly members credit nothing on completion; rewards are pooled here.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import User
from levelup.database.models.enums import QuestStatus, QuestType
from levelup.database.models.progression.quest_instance import QuestInstance
from levelup.database.models.progression.quest_template import QuestTemplate
from levelup.modules.catalog.service import QuestTemplateRepository
from levelup.modules.player.service import UserRepository
from levelup.modules.progression.service import CharacterClassRepository
from levelup.modules.quests.generation import instance_snapshot, materialize
from levelup.modules.quests.repository import QuestInstanceRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.calendar import start_of_week, weekly_expiry
from levelup.modules.shared.constants import EVENT_WEEKLY_COLLECTED, EVENT_WEEKLY_GENERATED
from levelup.modules.shared.exceptions import IncompleteBundleError
from levelup.modules.shared.formulas import average_level, split_evenly, weekly_bundle_totals

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from levelup.modules.economy.service import EconomyService
    from levelup.modules.progression.service import ProgressionService


class WeeklyBundleService(BaseService):
    """
    Weekly bundle gating, generation and collection.

    Public Methods
    --------------
    - is_weekly_unlocked() -> Eligibility check
    - generate_weekly_quests() -> Replace the bundle (no-op when ineligible)
    - ensure_weekly_bundle() -> Generate if eligible and none this week
    - generate_after_daily_completion() -> Generate if eligible and no live bundle
    - collect_weekly_reward() -> Pay out a fully completed bundle
    - get_weekly_status() -> Read model for the weekly card
    """

    def __init__(
        self,
        database: Any,
        config_manager: Any,
        event_bus: Any,
        logger: Any,
        *,
        progression: ProgressionService,
        economy: EconomyService,
        **kwargs: Any,
    ) -> None:
        super().__init__(database, config_manager, event_bus, logger, **kwargs)
        self._progression = progression
        self._economy = economy
        self._user_repo = UserRepository(
            model_class=User,
            logger=get_logger(f"{__name__}.UserRepository"),
        )
        self._class_repo = CharacterClassRepository(
            model_class=CharacterClass,
            logger=get_logger(f"{__name__}.CharacterClassRepository"),
        )
        self._template_repo = QuestTemplateRepository(
            model_class=QuestTemplate,
            logger=get_logger(f"{__name__}.QuestTemplateRepository"),
        )
        self._instance_repo = QuestInstanceRepository(
            model_class=QuestInstance,
            logger=get_logger(f"{__name__}.QuestInstanceRepository"),
        )

    # ========================================================================
    # Eligibility
    # ========================================================================

    def _eligibility_rule(self) -> tuple[int, int]:
        level = int(self.get_config("weekly.eligibility_level", required=True))
        count = int(self.get_config("weekly.eligible_class_count", required=True))
        return level, count

    def _count_eligible(self, unlocked: List[CharacterClass]) -> int:
        level, _ = self._eligibility_rule()
        return sum(1 for c in unlocked if c.level >= level)

    async def is_weekly_unlocked(self, *, session: Optional[AsyncSession] = None) -> bool:
        async with self._read(session) as s:
            unlocked = await self._class_repo.list_unlocked(s)
        _, required = self._eligibility_rule()
        return self._count_eligible(unlocked) >= required

    @staticmethod
    def generated_in_week_of(user: User, now: datetime) -> bool:
        last = user.last_weekly_generated
        return last is not None and start_of_week(last) == start_of_week(now)

    # ========================================================================
    # Generation
    # ========================================================================

    async def generate_weekly_quests(
        self, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """
        Replace the weekly bundle.

        No-op when the player is not eligible.

        Returns:
            Dict with keys: generated, quests, scaling_level, expires_at
        """
        self.log_operation("generate_weekly_quests")

        async with self._unit_of_work(session) as s:
            unlocked = await self._class_repo.list_unlocked(s)
            _, required = self._eligibility_rule()
            if self._count_eligible(unlocked) < required:
                self.log.debug(
                    "Weekly generation skipped: not eligible",
                    extra={"eligible": self._count_eligible(unlocked), "required": required},
                )
                return {"generated": False, "quests": [], "scaling_level": None, "expires_at": None}

            now = self.now()
            previous = await self._instance_repo.current_weekly(s, for_update=True)
            self._instance_repo.expire(previous)

            picked = await self._pick_templates(s)
            level = average_level(c.level for c in unlocked)
            expires_at = weekly_expiry(now)

            instances = [
                materialize(
                    template,
                    quest_type=QuestType.WEEKLY,
                    class_id=template.class_id,
                    level=level,
                    slot_index=index,
                    created_at=now,
                    expires_at=expires_at,
                )
                for index, template in enumerate(picked)
            ]
            self._instance_repo.add_many(s, instances)
            await self._instance_repo.flush(s)

            user = await self._user_repo.get_player(s, for_update=True)
            user.last_weekly_generated = now

            await self.emit_event(
                EVENT_WEEKLY_GENERATED,
                {
                    "count": len(instances),
                    "expired": len(previous),
                    "scaling_level": level,
                    "expires_at": expires_at.isoformat(),
                },
            )
            self.log.info(
                f"Weekly bundle generated: {len(instances)} quests at level {level}",
                extra={"count": len(instances), "expired": len(previous), "scaling_level": level},
            )
            return {
                "generated": True,
                "quests": [instance_snapshot(i) for i in instances],
                "scaling_level": level,
                "expires_at": expires_at,
            }

    async def _pick_templates(self, session: AsyncSession) -> List[QuestTemplate]:
        bundle_size = int(self.get_config("weekly.bundle_size", required=True))
        weekly_picks = int(self.get_config("weekly.weekly_template_picks", required=True))

        weeklies = await self._template_repo.list_enabled(session, QuestType.WEEKLY)
        dailies = await self._template_repo.list_enabled(session, QuestType.DAILY)

        picked_weeklies = self._rng.sample(weeklies, k=min(weekly_picks, len(weeklies)))
        daily_count = bundle_size - len(picked_weeklies)
        picked_dailies = self._rng.sample(dailies, k=min(daily_count, len(dailies)))
        return picked_weeklies + picked_dailies

    async def ensure_weekly_bundle(self, *, session: Optional[AsyncSession] = None) -> bool:
        """Generate a bundle if eligible and none was generated this week."""
        async with self._unit_of_work(session) as s:
            user = await self._user_repo.get_player(s)
            if self.generated_in_week_of(user, self.now()):
                return False
            if not await self.is_weekly_unlocked(session=s):
                return False
            result = await self.generate_weekly_quests(session=s)
            return bool(result["generated"])

    async def generate_after_daily_completion(self, *, session: AsyncSession) -> bool:
        """
        Generate a bundle once a Daily completion makes the player eligible.

        Skipped when a Weekly quest is still active or a bundle was already
        generated this week (a collected bundle is not renewed mid-week).
        """
        if not await self.is_weekly_unlocked(session=session):
            return False
        active = await self._instance_repo.find_by_type(
            session, QuestType.WEEKLY, [QuestStatus.ACTIVE]
        )
        if active:
            return False
        user = await self._user_repo.get_player(session)
        if self.generated_in_week_of(user, self.now()):
            return False
        result = await self.generate_weekly_quests(session=session)
        return bool(result["generated"])

    # ========================================================================
    # Collection
    # ========================================================================

    async def collect_weekly_reward(
        self, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """
        Pay out a fully completed weekly bundle.

        Gold and XP totals are the bundle sums times the weekly multiplier.
        Gold goes to the player; XP is split evenly (floor) across unlocked
        classes and each share is awarded through the progression ledger.
        The floor remainder is not distributed.

        Returns:
            Dict with keys: gold_awarded, xp_total, xp_awarded_per_class,
            total_xp_distributed, classes, level_ups

        Raises:
            IncompleteBundleError: If there is no live bundle or any member
                is not completed
        """
        multiplier = int(self.get_config("weekly.multiplier", required=True))
        self.log_operation("collect_weekly_reward", multiplier=multiplier)

        async with self._unit_of_work(session) as s:
            bundle = await self._instance_repo.current_weekly(s, for_update=True)
            completed = [q for q in bundle if q.status is QuestStatus.COMPLETED]
            if not bundle or len(completed) != len(bundle):
                raise IncompleteBundleError(len(completed), len(bundle))

            gold_total, xp_total = weekly_bundle_totals(
                (q.gold_reward for q in bundle),
                (q.xp_reward for q in bundle),
                multiplier,
            )

            await self._economy.credit_gold(gold_total, reason="weekly_bundle", session=s)

            unlocked = await self._class_repo.list_unlocked(s)
            per_class = split_evenly(xp_total, len(unlocked))
            level_ups: Dict[str, int] = {}
            if per_class > 0:
                for character in unlocked:
                    result = await self._progression.award_xp(
                        character.id, per_class, reason="weekly_bundle", session=s
                    )
                    if result["leveled_up"]:
                        level_ups[character.id] = result["new_level"]

            for quest in bundle:
                quest.status = QuestStatus.COLLECTED

            payout = {
                "gold_awarded": gold_total,
                "xp_total": xp_total,
                "xp_awarded_per_class": per_class,
                "total_xp_distributed": per_class * len(unlocked),
                "classes": [c.id for c in unlocked],
                "level_ups": level_ups,
            }
            await self.emit_event(EVENT_WEEKLY_COLLECTED, payout)
            self.log.info(
                f"Weekly bundle collected: {gold_total} gold, {per_class} XP per class",
                extra={
                    "gold_awarded": gold_total,
                    "xp_awarded_per_class": per_class,
                    "class_count": len(unlocked),
                },
            )
            return payout

    # ========================================================================
    # Read model
    # ========================================================================

    async def get_weekly_status(self, *, session: Optional[AsyncSession] = None) -> Dict[str, Any]:
        level, required = self._eligibility_rule()
        async with self._read(session) as s:
            unlocked = await self._class_repo.list_unlocked(s)
            bundle = await self._instance_repo.current_weekly(s)

        eligible = self._count_eligible(unlocked)
        completed = sum(1 for q in bundle if q.status is QuestStatus.COMPLETED)
        return {
            "unlocked": eligible >= required,
            "eligible_classes": eligible,
            "required_classes": required,
            "required_level": level,
            "quests": [instance_snapshot(q) for q in bundle],
            "completed": completed,
            "total": len(bundle),
            "collectable": bool(bundle) and completed == len(bundle),
            "expires_at": bundle[0].expires_at if bundle else None,
        }
