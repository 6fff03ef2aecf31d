"""
Progression Service
===================

Purpose
-------
The progression ledger: per-class level and XP state. This service is the
only writer of `level`, `current_xp` and `xp_to_next_level` on
`CharacterClass`, and of the lifetime `total_xp` counter on the user.

Domain
------
- Award XP to a class, resolving every level-up the award pays for
- Pin the XP bar at 0/0 once a class reaches max level
- Track lifetime XP earned from Daily completions

Design Notes
------------
- Level math lives in `formulas.apply_xp`; this service loads, applies and
  persists.
- Every write accepts an optional `session` so a composite operation
  (complete quest -> award XP -> weekly generation) is one unit of work.
- Emits `class.leveled_up` after commit when at least one level was gained.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import PLAYER_ID, User
from levelup.modules.shared.base_repository import BaseRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.constants import EVENT_CLASS_LEVELED_UP
from levelup.modules.shared.exceptions import NotFoundError
from levelup.modules.shared.formulas import apply_xp

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# ============================================================================
# Repository
# ============================================================================


class CharacterClassRepository(BaseRepository[CharacterClass]):
    """Repository for CharacterClass model."""

    async def list_all(self, session: AsyncSession) -> List[CharacterClass]:
        return await self.find_many_where(session, order_by=[CharacterClass.id])

    async def list_unlocked(self, session: AsyncSession) -> List[CharacterClass]:
        return await self.find_many_where(
            session,
            CharacterClass.is_unlocked.is_(True),
            order_by=[CharacterClass.id],
        )


# ============================================================================
# ProgressionService
# ============================================================================


class ProgressionService(BaseService):
    """
    Class level and XP ledger.

    Public Methods
    --------------
    - award_xp() -> Add XP to one class, leveling up as many times as paid for
    - add_lifetime_xp() -> Credit the user's lifetime XP counter
    - get_class_progress() -> Read-only level/XP snapshot
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._class_repo = CharacterClassRepository(
            model_class=CharacterClass,
            logger=get_logger(f"{__name__}.CharacterClassRepository"),
        )

    @property
    def classes(self) -> CharacterClassRepository:
        return self._class_repo

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def award_xp(
        self,
        class_id: str,
        amount: int,
        *,
        reason: str = "quest",
        session: Optional[AsyncSession] = None,
    ) -> Dict[str, Any]:
        """
        Add XP to a class and resolve level-ups.

        A single award may cross several thresholds. At level 100 the XP bar
        is pinned to 0/0 and surplus is discarded.

        Args:
            class_id: Class receiving the XP
            amount: XP to add (non-negative)
            reason: Free-form source tag for logs and events
            session: Active unit of work to join

        Returns:
            Dict with keys: class_id, xp_amount, old_level, new_level,
            levels_gained, leveled_up, current_xp, xp_to_next_level

        Raises:
            NotFoundError: If the class does not exist
            ValidationError: If amount is negative

        Example:
            >>> result = await progression.award_xp("Warrior", 250)
            >>> result["new_level"], result["current_xp"]
            (3, 50)
        """
        self.validate_non_negative_int(amount, "amount")
        self.log_operation("award_xp", class_id=class_id, xp_amount=amount, reason=reason)

        async with self._unit_of_work(session) as s:
            character = await self._class_repo.get_for_update(s, class_id)
            if character is None:
                raise NotFoundError("CharacterClass", class_id)

            old_level = character.level
            state = apply_xp(character.level, character.current_xp, amount)

            character.level = state.level
            character.current_xp = state.current_xp
            character.xp_to_next_level = state.xp_to_next_level

            if state.leveled_up:
                await self.emit_event(
                    EVENT_CLASS_LEVELED_UP,
                    {
                        "class_id": class_id,
                        "old_level": old_level,
                        "new_level": state.level,
                        "levels_gained": state.levels_gained,
                    },
                )
                self.log.info(
                    f"Class leveled up: {class_id} {old_level} -> {state.level}",
                    extra={
                        "class_id": class_id,
                        "old_level": old_level,
                        "new_level": state.level,
                        "levels_gained": state.levels_gained,
                    },
                )

            return {
                "class_id": class_id,
                "xp_amount": amount,
                "old_level": old_level,
                "new_level": state.level,
                "levels_gained": state.levels_gained,
                "leveled_up": state.leveled_up,
                "current_xp": state.current_xp,
                "xp_to_next_level": state.xp_to_next_level,
            }

    async def add_lifetime_xp(
        self, amount: int, *, session: Optional[AsyncSession] = None
    ) -> int:
        """Credit the user's lifetime XP counter; returns the new total."""
        self.validate_non_negative_int(amount, "amount")

        async with self._unit_of_work(session) as s:
            user = await s.get(User, PLAYER_ID, with_for_update=True)
            if user is None:
                raise NotFoundError("User", PLAYER_ID)
            user.total_xp += amount
            return user.total_xp

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_class_progress(
        self, class_id: str, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        async with self._read(session) as s:
            character = await self._class_repo.get(s, class_id)
            if character is None:
                raise NotFoundError("CharacterClass", class_id)
            return {
                "class_id": character.id,
                "level": character.level,
                "current_xp": character.current_xp,
                "xp_to_next_level": character.xp_to_next_level,
            }
