"""
LevelUp Domain Constants

Structural gameplay constants that are not balance knobs. Tunable numbers
(costs, multipliers, thresholds) live in `ConfigManager`.
"""

from __future__ import annotations

from typing import Final

# ============================================================================
# LEVELING
# ============================================================================

MIN_LEVEL: Final[int] = 1
MAX_LEVEL: Final[int] = 100
XP_PER_LEVEL: Final[int] = 100

# ============================================================================
# QUEST SLOTS
# ============================================================================

BASE_DAILY_SLOTS: Final[int] = 2
MAX_DAILY_SLOTS: Final[int] = 5

# ============================================================================
# CLASS ORDER
# ============================================================================

# Pseudo-class id used in class ordering to position the weekly bundle card.
WEEKLY_ORDER_ENTRY: Final[str] = "Weekly"

# ============================================================================
# EVENTS
# ============================================================================

EVENT_QUEST_PROGRESS_UPDATED: Final[str] = "quest.progress_updated"
EVENT_QUEST_COMPLETED: Final[str] = "quest.completed"
EVENT_QUEST_REROLLED: Final[str] = "quest.rerolled"
EVENT_CLASS_LEVELED_UP: Final[str] = "class.leveled_up"
EVENT_CLASS_UNLOCKED: Final[str] = "class.unlocked"
EVENT_CLASS_SLOT_UNLOCKED: Final[str] = "class.slot_unlocked"
EVENT_DAILY_GENERATED: Final[str] = "quests.daily_generated"
EVENT_WEEKLY_GENERATED: Final[str] = "quests.weekly_generated"
EVENT_WEEKLY_COLLECTED: Final[str] = "weekly.collected"
EVENT_CATALOG_SYNCED: Final[str] = "catalog.synced"
EVENT_TEMPLATE_CREATED: Final[str] = "catalog.template_created"
EVENT_TICK_COMPLETED: Final[str] = "maintenance.tick_completed"
EVENT_APP_FOREGROUND: Final[str] = "app.foreground"
