"""
QuestInstance: materialized, time-boxed quest.
Schema only.

Instances are never deleted; regeneration and collection move them to a
terminal status so the table doubles as quest history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum as SAEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database.base import Base, IdMixin, TimestampMixin
from levelup.database.models.enums import QuestStatus, QuestType
from levelup.database.models.progression.quest_template import enum_values


class QuestInstance(Base, IdMixin, TimestampMixin):
    """
    A concrete quest assigned to a slot.

    ``template_id`` is a weak reference (no foreign key): title, description
    and rewards are copied at creation and survive template edits or
    deletion. ``class_level`` snapshots the owning class level used for
    scaling.
    """

    __tablename__ = "quest_instances"
    __table_args__ = (
        Index("ix_quest_instances_type_class_status", "type", "class_id", "status"),
        Index("ix_quest_instances_type_status", "type", "status"),
    )

    template_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    type: Mapped[QuestType] = mapped_column(
        SAEnum(QuestType, native_enum=False, values_callable=enum_values, length=16),
        nullable=False,
    )
    template_type: Mapped[QuestType] = mapped_column(
        SAEnum(QuestType, native_enum=False, values_callable=enum_values, length=16),
        nullable=False,
    )
    class_id: Mapped[str] = mapped_column(String(64), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    requirement_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_goal: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    gold_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[QuestStatus] = mapped_column(
        SAEnum(QuestStatus, native_enum=False, values_callable=enum_values, length=16),
        nullable=False,
        default=QuestStatus.ACTIVE,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    class_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    reroll_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    slot_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
