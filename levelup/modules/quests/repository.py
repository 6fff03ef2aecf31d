"""
Quest instance queries.

Indexed lookups the engine needs from storage:
- instances by ``(type, class, status)``
- instances by ``(type, status)``
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Sequence, Set

from levelup.database.models.enums import QuestStatus, QuestType
from levelup.database.models.progression.quest_instance import QuestInstance
from levelup.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

LIVE_STATUSES = (QuestStatus.ACTIVE, QuestStatus.COMPLETED)


class QuestInstanceRepository(BaseRepository[QuestInstance]):
    """Repository for QuestInstance model."""

    async def find_for_class(
        self,
        session: AsyncSession,
        quest_type: QuestType,
        class_id: str,
        statuses: Optional[Sequence[QuestStatus]] = None,
        *,
        for_update: bool = False,
    ) -> List[QuestInstance]:
        conditions = [QuestInstance.type == quest_type, QuestInstance.class_id == class_id]
        if statuses:
            conditions.append(QuestInstance.status.in_(list(statuses)))
        return await self.find_many_where(
            session,
            *conditions,
            for_update=for_update,
            order_by=[QuestInstance.slot_index, QuestInstance.id],
        )

    async def find_by_type(
        self,
        session: AsyncSession,
        quest_type: QuestType,
        statuses: Optional[Sequence[QuestStatus]] = None,
        *,
        for_update: bool = False,
    ) -> List[QuestInstance]:
        conditions = [QuestInstance.type == quest_type]
        if statuses:
            conditions.append(QuestInstance.status.in_(list(statuses)))
        return await self.find_many_where(
            session,
            *conditions,
            for_update=for_update,
            order_by=[QuestInstance.class_id, QuestInstance.slot_index, QuestInstance.id],
        )

    async def current_weekly(
        self, session: AsyncSession, *, for_update: bool = False
    ) -> List[QuestInstance]:
        """The bundle: Weekly instances that are active or completed."""
        return await self.find_by_type(
            session, QuestType.WEEKLY, LIVE_STATUSES, for_update=for_update
        )

    async def template_ids_in_use_since(
        self,
        session: AsyncSession,
        quest_type: QuestType,
        class_id: str,
        since: datetime,
        *,
        exclude_id: Optional[int] = None,
    ) -> Set[int]:
        """Template ids backing live instances of ``(type, class)`` created since ``since``."""
        conditions = [
            QuestInstance.type == quest_type,
            QuestInstance.class_id == class_id,
            QuestInstance.status.in_(list(LIVE_STATUSES)),
            QuestInstance.created_at >= since,
        ]
        if exclude_id is not None:
            conditions.append(QuestInstance.id != exclude_id)
        rows = await self.find_many_where(session, *conditions)
        return {row.template_id for row in rows}

    def expire(self, instances: Sequence[QuestInstance]) -> int:
        """Move instances to ``expired``; returns how many changed."""
        changed = 0
        for instance in instances:
            if instance.status is not QuestStatus.EXPIRED:
                instance.status = QuestStatus.EXPIRED
                changed += 1
        return changed
