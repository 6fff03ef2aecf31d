"""
CharacterClass: per-category level and XP state.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database.base import Base


class CharacterClass(Base):
    """
    A skill category the player levels independently.

    Invariant: ``daily_quest_slots == 2 + number of slotN_unlocked flags set``.
    Level and XP fields are written only by the progression ledger.
    """

    __tablename__ = "character_classes"
    __table_args__ = (
        Index("ix_character_classes_unlocked_level", "is_unlocked", "level"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False)

    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    xp_to_next_level: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    is_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unlocked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    daily_quest_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    slot3_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    slot4_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    slot5_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
