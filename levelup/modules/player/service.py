"""
Player Service
==============

Purpose
-------
Read models over the single player profile and the class roster, plus the
player's custom class ordering.

Domain
------
- User snapshot (gold, lifetime XP, reroll counter, activity stamps)
- Class roster snapshots
- Class ordering for the home and quests screens, including the position of
  the weekly bundle card

Design Notes
------------
- `class_order` is a list of class ids plus the `Weekly` pseudo-entry.
- Home view puts unlocked classes first; within each group the user's order
  applies. Quests view uses the user's order only. Classes missing from the
  order sort last, by id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from sqlalchemy.orm.attributes import flag_modified

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import PLAYER_ID, User
from levelup.database.models.enums import ClassOrderView
from levelup.modules.progression.service import CharacterClassRepository
from levelup.modules.shared.base_repository import BaseRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.constants import WEEKLY_ORDER_ENTRY
from levelup.modules.shared.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# ============================================================================
# Repository
# ============================================================================


class UserRepository(BaseRepository[User]):
    """Repository for the singleton User record."""

    async def get_player(
        self, session: AsyncSession, *, for_update: bool = False
    ) -> User:
        user = await self.get(session, PLAYER_ID, for_update=for_update)
        if user is None:
            raise NotFoundError("User", PLAYER_ID)
        return user


def user_snapshot(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "gold": user.gold,
        "total_xp": user.total_xp,
        "daily_reroll_count": user.daily_reroll_count,
        "last_reroll_reset": user.last_reroll_reset,
        "last_active": user.last_active,
        "last_weekly_generated": user.last_weekly_generated,
        "created_at": user.created_at,
        "class_order": list(user.class_order or []),
    }


def class_snapshot(character: CharacterClass) -> Dict[str, Any]:
    return {
        "id": character.id,
        "name": character.name,
        "level": character.level,
        "current_xp": character.current_xp,
        "xp_to_next_level": character.xp_to_next_level,
        "is_unlocked": character.is_unlocked,
        "unlocked_at": character.unlocked_at,
        "daily_quest_slots": character.daily_quest_slots,
        "slot3_unlocked": character.slot3_unlocked,
        "slot4_unlocked": character.slot4_unlocked,
        "slot5_unlocked": character.slot5_unlocked,
    }


# ============================================================================
# PlayerService
# ============================================================================


class PlayerService(BaseService):
    """
    Player profile and class roster reads, class ordering writes.

    Public Methods
    --------------
    - get_user() -> User snapshot
    - get_class() / list_classes() -> Class snapshots
    - get_sorted_classes() -> Classes in display order for a view
    - get_weekly_position() -> Index of the weekly card in the order
    - update_class_order() -> Replace the user's class order
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._user_repo = UserRepository(
            model_class=User,
            logger=get_logger(f"{__name__}.UserRepository"),
        )
        self._class_repo = CharacterClassRepository(
            model_class=CharacterClass,
            logger=get_logger(f"{__name__}.CharacterClassRepository"),
        )

    @property
    def users(self) -> UserRepository:
        return self._user_repo

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_user(self, *, session: Optional[AsyncSession] = None) -> Dict[str, Any]:
        async with self._read(session) as s:
            user = await self._user_repo.get_player(s)
            return user_snapshot(user)

    async def get_class(
        self, class_id: str, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        async with self._read(session) as s:
            character = await self._class_repo.get(s, class_id)
            if character is None:
                raise NotFoundError("CharacterClass", class_id)
            return class_snapshot(character)

    async def list_classes(
        self, *, session: Optional[AsyncSession] = None
    ) -> List[Dict[str, Any]]:
        async with self._read(session) as s:
            return [class_snapshot(c) for c in await self._class_repo.list_all(s)]

    async def get_sorted_classes(
        self,
        view_mode: ClassOrderView | str = ClassOrderView.HOME,
        *,
        session: Optional[AsyncSession] = None,
    ) -> List[Dict[str, Any]]:
        """
        Classes in display order.

        Args:
            view_mode: "home" (unlocked first, then user order) or "quests"
                (user order only)

        Raises:
            ValidationError: If view_mode is unknown
        """
        try:
            view = ClassOrderView(view_mode)
        except ValueError as exc:
            raise ValidationError("view_mode", f"unknown view mode {view_mode!r}") from exc

        async with self._read(session) as s:
            user = await self._user_repo.get_player(s)
            classes = await self._class_repo.list_all(s)

        ordered = sort_classes(classes, user.class_order or [], view)
        return [class_snapshot(c) for c in ordered]

    async def get_weekly_position(self, *, session: Optional[AsyncSession] = None) -> int:
        """Index of the weekly bundle card in the class order, or -1."""
        async with self._read(session) as s:
            user = await self._user_repo.get_player(s)
            order = list(user.class_order or [])
        return order.index(WEEKLY_ORDER_ENTRY) if WEEKLY_ORDER_ENTRY in order else -1

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def update_class_order(
        self, order: Sequence[str], *, session: Optional[AsyncSession] = None
    ) -> List[str]:
        """
        Replace the user's class order.

        Raises:
            ValidationError: On duplicates or unknown class ids
        """
        new_order = list(order)
        self.log_operation("update_class_order", order=new_order)

        if len(set(new_order)) != len(new_order):
            raise ValidationError("class_order", "class order entries must be unique")

        async with self._unit_of_work(session) as s:
            known = {c.id for c in await self._class_repo.list_all(s)}
            known.add(WEEKLY_ORDER_ENTRY)
            unknown = [entry for entry in new_order if entry not in known]
            if unknown:
                raise ValidationError(
                    "class_order", f"unknown class ids: {', '.join(unknown)}"
                )

            user = await self._user_repo.get_player(s, for_update=True)
            user.class_order = new_order
            flag_modified(user, "class_order")

        return new_order


def sort_classes(
    classes: Sequence[CharacterClass],
    order: Sequence[str],
    view: ClassOrderView,
) -> List[CharacterClass]:
    """Order classes by the user's order; home view puts unlocked classes first."""
    position = {class_id: index for index, class_id in enumerate(order)}
    missing = len(position)

    def key(character: CharacterClass) -> tuple:
        rank = position.get(character.id, missing)
        if view is ClassOrderView.HOME:
            return (0 if character.is_unlocked else 1, rank, character.id)
        return (rank, character.id)

    return sorted(classes, key=key)
