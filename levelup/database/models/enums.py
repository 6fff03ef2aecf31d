"""
Database Model Enums
====================

Type-safe constants for categorical columns. Stored as their string values
(non-native enums) so the SQLite schema stays readable.
"""

from __future__ import annotations

import enum


class QuestType(str, enum.Enum):
    """Cadence of a quest template or instance."""

    DAILY = "Daily"
    WEEKLY = "Weekly"


class QuestStatus(str, enum.Enum):
    """
    Quest instance lifecycle.

    active -> completed       goal met and completed by the player
    active -> expired         superseded by regeneration
    completed -> collected    Weekly bundle member consumed by collection
    completed -> expired      Weekly bundle member forfeited at week rollover
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    COLLECTED = "collected"

    @property
    def is_terminal(self) -> bool:
        return self in (QuestStatus.EXPIRED, QuestStatus.COLLECTED)


class SlotId(str, enum.Enum):
    """Purchasable Daily quest slots (slots 1 and 2 are free)."""

    SLOT3 = "slot3"
    SLOT4 = "slot4"
    SLOT5 = "slot5"


class ClassOrderView(str, enum.Enum):
    """How the class list is ordered for a screen."""

    HOME = "home"
    QUESTS = "quests"
