"""
Quests Module
=============

Domain: quest instances, from materialization to terminal status

Services:
- QuestGenerationService: Daily quest materialization
- QuestService: progress, completion and reroll
"""

from .generation import QuestGenerationService, instance_snapshot, materialize, scale_template
from .repository import QuestInstanceRepository
from .service import QuestService

__all__ = [
    "QuestGenerationService",
    "QuestInstanceRepository",
    "QuestService",
    "instance_snapshot",
    "materialize",
    "scale_template",
]
