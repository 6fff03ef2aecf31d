"""
User: the single player profile.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from levelup.core.database.base import Base

PLAYER_ID = "player"


class User(Base):
    """
    Singleton player record (id is always ``"player"``).

    Gold and the reroll counter are owned by the economy; ``total_xp`` is a
    lifetime counter credited on Daily completions.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=PLAYER_ID)

    gold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    daily_reroll_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reroll_reset: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    last_active: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    last_weekly_generated: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    class_order: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
