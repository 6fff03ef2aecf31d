"""
Quest Generation Service
========================

Purpose
-------
Materialize quest templates into time-boxed Daily instances, scaled to the
owning class level.

Domain
------
- Daily regeneration for every unlocked class (expire-then-replace)
- Daily generation scoped to one class (after a class unlock)
- Template -> instance materialization shared with reroll and the weekly
  bundle

Design Notes
------------
- Regeneration never appends: live `active` Daily instances of a class are
  moved to `expired` before the new set is created. Completed instances keep
  their status as history.
- Selection is a shuffle of the enabled templates for the class, truncated
  to the class's `daily_quest_slots`. The random source is injected.
- Expiry is the next local midnight after generation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.enums import QuestStatus, QuestType
from levelup.database.models.progression.quest_instance import QuestInstance
from levelup.database.models.progression.quest_template import QuestTemplate
from levelup.modules.catalog.service import QuestTemplateRepository
from levelup.modules.progression.service import CharacterClassRepository
from levelup.modules.quests.repository import QuestInstanceRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.calendar import next_local_midnight
from levelup.modules.shared.constants import EVENT_DAILY_GENERATED
from levelup.modules.shared.exceptions import NotFoundError
from levelup.modules.shared.formulas import requirement_count, scaled_reward

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class ScaledContent:
    """Requirement and rewards of a template at a level."""

    requirement_count: int
    xp_reward: int
    gold_reward: int


def scale_template(template: QuestTemplate, level: int) -> ScaledContent:
    return ScaledContent(
        requirement_count=requirement_count(
            level,
            template.scaling,
            template.level1_requirement_count,
            template.level100_requirement_count,
            template.requirement_count,
        ),
        xp_reward=scaled_reward(template.base_xp, level),
        gold_reward=scaled_reward(template.base_gold, level),
    )


def materialize(
    template: QuestTemplate,
    *,
    quest_type: QuestType,
    class_id: str,
    level: int,
    slot_index: int,
    created_at: datetime,
    expires_at: datetime,
) -> QuestInstance:
    """Copy a template into a fresh `active` instance scaled to ``level``."""
    content = scale_template(template, level)
    return QuestInstance(
        template_id=template.id,
        type=quest_type,
        template_type=template.type,
        class_id=class_id,
        title=template.title,
        description=template.description,
        requirement_count=content.requirement_count,
        progress=0,
        progress_goal=content.requirement_count,
        xp_reward=content.xp_reward,
        gold_reward=content.gold_reward,
        status=QuestStatus.ACTIVE,
        created_at=created_at,
        expires_at=expires_at,
        class_level=level,
        reroll_count=0,
        slot_index=slot_index,
    )


def instance_snapshot(instance: QuestInstance) -> Dict[str, Any]:
    return {
        "id": instance.id,
        "template_id": instance.template_id,
        "type": instance.type.value,
        "template_type": instance.template_type.value,
        "class_id": instance.class_id,
        "title": instance.title,
        "description": instance.description,
        "requirement_count": instance.requirement_count,
        "progress": instance.progress,
        "progress_goal": instance.progress_goal,
        "xp_reward": instance.xp_reward,
        "gold_reward": instance.gold_reward,
        "status": instance.status.value,
        "created_at": instance.created_at,
        "expires_at": instance.expires_at,
        "completed_at": instance.completed_at,
        "class_level": instance.class_level,
        "reroll_count": instance.reroll_count,
        "slot_index": instance.slot_index,
    }


# ============================================================================
# QuestGenerationService
# ============================================================================


class QuestGenerationService(BaseService):
    """
    Daily quest materialization.

    Public Methods
    --------------
    - generate_daily_quests() -> Regenerate Daily quests for all unlocked classes
    - generate_daily_quests_for_class() -> Regenerate Daily quests for one class
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
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
    # PUBLIC API
    # ========================================================================

    async def generate_daily_quests(
        self, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, int]:
        """
        Regenerate Daily quests for every unlocked class.

        Returns:
            Dict of class_id -> number of instances created
        """
        self.log_operation("generate_daily_quests")

        async with self._unit_of_work(session) as s:
            now = self.now()
            created: Dict[str, int] = {}
            for character in await self._class_repo.list_unlocked(s):
                instances = await self._regenerate_for_class(s, character, now)
                created[character.id] = len(instances)

            await self.emit_event(EVENT_DAILY_GENERATED, {"created": dict(created)})
            self.log.info(
                f"Daily quests generated for {len(created)} classes",
                extra={"created": created},
            )
            return created

    async def generate_daily_quests_for_class(
        self, class_id: str, *, session: Optional[AsyncSession] = None
    ) -> List[Dict[str, Any]]:
        """
        Regenerate Daily quests for one class.

        A locked class gets nothing.

        Raises:
            NotFoundError: If the class does not exist
        """
        self.log_operation("generate_daily_quests_for_class", class_id=class_id)

        async with self._unit_of_work(session) as s:
            character = await self._class_repo.get(s, class_id)
            if character is None:
                raise NotFoundError("CharacterClass", class_id)
            if not character.is_unlocked:
                self.log.debug(
                    "Skipping Daily generation for locked class",
                    extra={"class_id": class_id},
                )
                return []

            instances = await self._regenerate_for_class(s, character, self.now())
            await self.emit_event(
                EVENT_DAILY_GENERATED, {"created": {class_id: len(instances)}}
            )
            return [instance_snapshot(i) for i in instances]

    # ========================================================================
    # Internals
    # ========================================================================

    async def _regenerate_for_class(
        self, session: AsyncSession, character: CharacterClass, now: datetime
    ) -> List[QuestInstance]:
        previous = await self._instance_repo.find_for_class(
            session,
            QuestType.DAILY,
            character.id,
            [QuestStatus.ACTIVE],
            for_update=True,
        )
        self._instance_repo.expire(previous)

        pool = await self._template_repo.list_enabled(session, QuestType.DAILY, character.id)
        selected = self._rng.sample(pool, k=min(character.daily_quest_slots, len(pool)))

        expires_at = next_local_midnight(now)
        instances = [
            materialize(
                template,
                quest_type=QuestType.DAILY,
                class_id=character.id,
                level=character.level,
                slot_index=index,
                created_at=now,
                expires_at=expires_at,
            )
            for index, template in enumerate(selected)
        ]
        self._instance_repo.add_many(session, instances)
        await self._instance_repo.flush(session)

        self.log.debug(
            f"Regenerated Daily quests for {character.id}",
            extra={
                "class_id": character.id,
                "expired": len(previous),
                "created": len(instances),
                "slots": character.daily_quest_slots,
            },
        )
        return instances
