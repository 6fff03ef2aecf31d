"""
Database Models Package
=======================

ORM models, organized by domain:

- core: the player profile (`User`) and per-category progress (`CharacterClass`)
- progression: quest definitions (`QuestTemplate`) and materialized quests
  (`QuestInstance`)
- enums: shared type-safe enumerations

Models are schema only; rules live in `levelup.modules`.
"""

from levelup.core.database.base import Base
from levelup.database.models.core import PLAYER_ID, CharacterClass, User
from levelup.database.models.enums import (
    ClassOrderView,
    QuestStatus,
    QuestType,
    SlotId,
)
from levelup.database.models.progression import QuestInstance, QuestTemplate

__all__ = [
    "Base",
    "CharacterClass",
    "ClassOrderView",
    "PLAYER_ID",
    "QuestInstance",
    "QuestStatus",
    "QuestTemplate",
    "QuestType",
    "SlotId",
    "User",
]
