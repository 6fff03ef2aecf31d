from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import PLAYER_ID, User

__all__ = ["CharacterClass", "PLAYER_ID", "User"]
