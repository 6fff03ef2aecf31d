"""
QuestTemplate: immutable quest definition used to materialize instances.
Schema only.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Enum as SAEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database.base import Base, IdMixin, TimestampMixin
from levelup.database.models.enums import QuestType


def enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class QuestTemplate(Base, IdMixin, TimestampMixin):
    """
    Catalog or user-authored quest definition.

    When ``scaling`` is set and both anchors are present, the requirement is
    interpolated between ``level1_requirement_count`` and
    ``level100_requirement_count``; otherwise ``requirement_count`` applies.
    Catalog identity for sync is ``(title, class_id, type)``.
    """

    __tablename__ = "quest_templates"
    __table_args__ = (
        Index("ix_quest_templates_type_class", "type", "class_id"),
        Index("ix_quest_templates_identity", "title", "class_id", "type"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[QuestType] = mapped_column(
        SAEnum(QuestType, native_enum=False, values_callable=enum_values, length=16),
        nullable=False,
    )
    class_id: Mapped[str] = mapped_column(String(64), nullable=False)

    base_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_gold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    scaling: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    level1_requirement_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    level100_requirement_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    requirement_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
