from levelup.database.models.progression.quest_instance import QuestInstance
from levelup.database.models.progression.quest_template import QuestTemplate

__all__ = ["QuestInstance", "QuestTemplate"]
