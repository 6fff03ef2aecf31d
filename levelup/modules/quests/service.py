"""
Quest Service
=============

Purpose
-------
The quest instance manager: progress tracking, completion and reroll. This
service is the only writer of quest instance status.

Domain
------
- Progress updates clamped to ``[0, progress_goal]``, active quests only
- Completion: Daily quests pay gold and XP; Weekly quests pay nothing
  individually (pooled in the weekly bundle)
- Reroll: replace an active quest's content in place with another template
  of the same type and class, for a rising gold price

State machine
-------------
    active -> completed     complete()
    active -> expired       regeneration (QuestGenerationService / WeeklyBundleService)
    completed -> collected  weekly collection
    completed -> expired    weekly bundle replaced before collection

Design Notes
------------
- Each operation runs as one unit of work: a reroll that fails after
  pricing, or a completion whose XP award fails, changes nothing.
- A Daily completion that makes the player weekly-eligible generates the
  weekly bundle in the same unit of work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.enums import QuestStatus, QuestType
from levelup.database.models.progression.quest_instance import QuestInstance
from levelup.database.models.progression.quest_template import QuestTemplate
from levelup.modules.catalog.service import QuestTemplateRepository
from levelup.modules.progression.service import CharacterClassRepository
from levelup.modules.quests.generation import instance_snapshot, scale_template
from levelup.modules.quests.repository import QuestInstanceRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.calendar import start_of_day
from levelup.modules.shared.constants import (
    EVENT_QUEST_COMPLETED,
    EVENT_QUEST_PROGRESS_UPDATED,
    EVENT_QUEST_REROLLED,
    MIN_LEVEL,
)
from levelup.modules.shared.exceptions import (
    IncompleteProgressError,
    InvalidStateError,
    NoAlternativesError,
    NotFoundError,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from levelup.modules.economy.service import EconomyService
    from levelup.modules.progression.service import ProgressionService
    from levelup.modules.weekly.service import WeeklyBundleService


class QuestService(BaseService):
    """
    Quest instance lifecycle.

    Public Methods
    --------------
    - get_quest() / list_active_quests() -> Instance snapshots
    - update_progress() -> Set progress (clamped)
    - increment_progress() / decrement_progress() -> Relative progress
    - complete_quest() -> Finish a quest and pay Daily rewards
    - reroll_quest() -> Swap an active quest for another template
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
        weekly: WeeklyBundleService,
        **kwargs: Any,
    ) -> None:
        super().__init__(database, config_manager, event_bus, logger, **kwargs)
        self._progression = progression
        self._economy = economy
        self._weekly = weekly
        self._instance_repo = QuestInstanceRepository(
            model_class=QuestInstance,
            logger=get_logger(f"{__name__}.QuestInstanceRepository"),
        )
        self._template_repo = QuestTemplateRepository(
            model_class=QuestTemplate,
            logger=get_logger(f"{__name__}.QuestTemplateRepository"),
        )
        self._class_repo = CharacterClassRepository(
            model_class=CharacterClass,
            logger=get_logger(f"{__name__}.CharacterClassRepository"),
        )

    async def _load(
        self, session: AsyncSession, quest_id: int, *, for_update: bool = True
    ) -> QuestInstance:
        instance = await self._instance_repo.get(session, quest_id, for_update=for_update)
        if instance is None:
            raise NotFoundError("QuestInstance", quest_id)
        return instance

    @staticmethod
    def _require_active(instance: QuestInstance, action: str) -> None:
        if instance.status is not QuestStatus.ACTIVE:
            raise InvalidStateError(action, instance.status.value, instance.id)

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_quest(
        self, quest_id: int, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        async with self._read(session) as s:
            return instance_snapshot(await self._load(s, quest_id, for_update=False))

    async def list_active_quests(
        self,
        quest_type: Optional[QuestType] = None,
        class_id: Optional[str] = None,
        *,
        session: Optional[AsyncSession] = None,
    ) -> List[Dict[str, Any]]:
        """
        Live quests: Daily quests that are active or completed today, and
        the current weekly bundle.
        """
        conditions = [QuestInstance.status.in_([QuestStatus.ACTIVE, QuestStatus.COMPLETED])]
        if quest_type is not None:
            conditions.append(QuestInstance.type == QuestType(quest_type))
        if class_id is not None:
            conditions.append(QuestInstance.class_id == class_id)

        async with self._read(session) as s:
            rows = await self._instance_repo.find_many_where(
                s,
                *conditions,
                order_by=[QuestInstance.type, QuestInstance.class_id, QuestInstance.slot_index],
            )
        today = start_of_day(self.now())
        return [
            instance_snapshot(q)
            for q in rows
            if q.type is QuestType.WEEKLY or q.status is QuestStatus.ACTIVE or q.created_at >= today
        ]

    # ========================================================================
    # PUBLIC API - Progress
    # ========================================================================

    async def update_progress(
        self, quest_id: int, value: int, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """
        Set a quest's progress, clamped to ``[0, progress_goal]``.

        Raises:
            NotFoundError: If the quest does not exist
            InvalidStateError: If the quest is not active
        """
        async with self._unit_of_work(session) as s:
            instance = await self._load(s, quest_id)
            self._require_active(instance, "update progress on")

            old = instance.progress
            instance.progress = max(0, min(int(value), instance.progress_goal))

            if instance.progress != old:
                await self.emit_event(
                    EVENT_QUEST_PROGRESS_UPDATED,
                    {
                        "quest_id": instance.id,
                        "class_id": instance.class_id,
                        "progress": instance.progress,
                        "progress_goal": instance.progress_goal,
                    },
                )
            return instance_snapshot(instance)

    async def increment_progress(
        self, quest_id: int, amount: int = 1, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """Add ``amount`` to progress; saturates at the goal."""
        self.validate_non_negative_int(amount, "amount")
        async with self._unit_of_work(session) as s:
            instance = await self._load(s, quest_id)
            return await self.update_progress(quest_id, instance.progress + amount, session=s)

    async def decrement_progress(
        self, quest_id: int, amount: int = 1, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """Subtract ``amount`` from progress; floors at 0."""
        self.validate_non_negative_int(amount, "amount")
        async with self._unit_of_work(session) as s:
            instance = await self._load(s, quest_id)
            return await self.update_progress(quest_id, instance.progress - amount, session=s)

    # ========================================================================
    # PUBLIC API - Completion
    # ========================================================================

    async def complete_quest(
        self, quest_id: int, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """
        Complete a quest whose progress has reached its goal.

        Daily quests credit their gold and XP to the player and their class
        (several level-ups are possible). Weekly quests credit nothing.

        Returns:
            Dict with keys: quest_id, type, class_id, gold_awarded,
            xp_awarded, leveled_up, new_level, weekly_generated

        Raises:
            NotFoundError: If the quest does not exist
            InvalidStateError: If the quest is not active
            IncompleteProgressError: If progress is below the goal
        """
        self.log_operation("complete_quest", quest_id=quest_id)

        async with self._unit_of_work(session) as s:
            instance = await self._load(s, quest_id)
            self._require_active(instance, "complete")
            if instance.progress < instance.progress_goal:
                raise IncompleteProgressError(
                    instance.id, instance.progress, instance.progress_goal
                )

            instance.status = QuestStatus.COMPLETED
            instance.completed_at = self.now()

            result: Dict[str, Any] = {
                "quest_id": instance.id,
                "type": instance.type.value,
                "class_id": instance.class_id,
                "gold_awarded": 0,
                "xp_awarded": 0,
                "leveled_up": False,
                "new_level": None,
                "weekly_generated": False,
            }

            if instance.type is QuestType.DAILY:
                await self._economy.credit_gold(
                    instance.gold_reward, reason="quest_completion", session=s
                )
                await self._progression.add_lifetime_xp(instance.xp_reward, session=s)
                award = await self._progression.award_xp(
                    instance.class_id, instance.xp_reward, reason="quest_completion", session=s
                )
                result.update(
                    gold_awarded=instance.gold_reward,
                    xp_awarded=instance.xp_reward,
                    leveled_up=award["leveled_up"],
                    new_level=award["new_level"] if award["leveled_up"] else None,
                )
                result["weekly_generated"] = await self._weekly.generate_after_daily_completion(
                    session=s
                )

            await self.emit_event(EVENT_QUEST_COMPLETED, dict(result))
            self.log.info(
                f"Quest completed: {instance.title}",
                extra={
                    "quest_id": instance.id,
                    "class_id": instance.class_id,
                    "type": instance.type.value,
                    "gold_awarded": result["gold_awarded"],
                    "xp_awarded": result["xp_awarded"],
                },
            )
            return result

    # ========================================================================
    # PUBLIC API - Reroll
    # ========================================================================

    async def reroll_quest(
        self, quest_id: int, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """
        Replace an active quest's content with another template.

        The candidate pool is the enabled templates of the same type and
        class, minus the current template and minus templates backing any
        live instance of that type and class created today. The new content
        is scaled to the class's current level; the instance keeps its id
        and slot, and progress restarts at 0.

        Returns:
            Dict with keys: quest_id, cost, gold, daily_reroll_count,
            template_id, title, reroll_count

        Raises:
            NotFoundError: If the quest does not exist
            InvalidStateError: If the quest is not active
            InsufficientFundsError: If gold is below the reroll price
            NoAlternativesError: If no candidate template remains
        """
        self.log_operation("reroll_quest", quest_id=quest_id)

        async with self._unit_of_work(session) as s:
            instance = await self._load(s, quest_id)
            self._require_active(instance, "reroll")

            await self._economy.quote_reroll(session=s)

            templates = await self._template_repo.list_enabled(
                s, instance.type, instance.class_id
            )
            in_use = await self._instance_repo.template_ids_in_use_since(
                s,
                instance.type,
                instance.class_id,
                start_of_day(self.now()),
                exclude_id=instance.id,
            )
            pool = [
                t for t in templates if t.id != instance.template_id and t.id not in in_use
            ]
            if not pool:
                raise NoAlternativesError(instance.id, instance.type.value, instance.class_id)

            template = self._rng.choice(pool)
            character = await self._class_repo.get(s, instance.class_id)
            level = character.level if character is not None else MIN_LEVEL
            content = scale_template(template, level)

            charge = await self._economy.charge_reroll(session=s)

            previous_title = instance.title
            instance.template_id = template.id
            instance.template_type = template.type
            instance.title = template.title
            instance.description = template.description
            instance.requirement_count = content.requirement_count
            instance.progress = 0
            instance.progress_goal = content.requirement_count
            instance.xp_reward = content.xp_reward
            instance.gold_reward = content.gold_reward
            instance.class_level = level
            instance.reroll_count += 1

            await self.emit_event(
                EVENT_QUEST_REROLLED,
                {
                    "quest_id": instance.id,
                    "class_id": instance.class_id,
                    "cost": charge["cost"],
                    "old_title": previous_title,
                    "new_title": instance.title,
                },
            )
            return {
                "quest_id": instance.id,
                "cost": charge["cost"],
                "gold": charge["gold"],
                "daily_reroll_count": charge["daily_reroll_count"],
                "template_id": template.id,
                "title": template.title,
                "reroll_count": instance.reroll_count,
            }
