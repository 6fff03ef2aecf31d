"""
Economy Service
===============

Purpose
-------
Owns the gold balance and the daily reroll counter, and sells content:
rerolls, class unlocks and extra Daily quest slots.

Domain
------
- Reroll price curve indexed by today's reroll count
- Class unlock: flat cost, then immediate Daily generation for that class
- Slot unlock: per-slot cost and class level gate
- Gold credits from quest rewards and weekly bundles
- Daily reroll counter reset at the day boundary

Design Notes
------------
- All prices are balance config (`economy.*`).
- Every check runs before any write; a failed purchase changes nothing.
- Writes join the caller's session so a reroll or completion charges and
  mutates in one unit of work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from levelup.core.logging.logger import get_logger
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import User
from levelup.database.models.enums import SlotId
from levelup.modules.economy.slots import SlotRule, build_slot_rules, unlocked_slot_count
from levelup.modules.player.service import UserRepository
from levelup.modules.progression.service import CharacterClassRepository
from levelup.modules.shared.base_service import BaseService
from levelup.modules.shared.constants import (
    BASE_DAILY_SLOTS,
    EVENT_CLASS_SLOT_UNLOCKED,
    EVENT_CLASS_UNLOCKED,
)
from levelup.modules.shared.exceptions import (
    AlreadyUnlockedError,
    InsufficientFundsError,
    NotFoundError,
    PreconditionUnmetError,
    ValidationError,
)
from levelup.modules.shared.formulas import reroll_cost

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from levelup.modules.quests.generation import QuestGenerationService


class EconomyService(BaseService):
    """
    Gold ledger and purchases.

    Public Methods
    --------------
    - get_reroll_cost() -> Price of the next reroll
    - quote_reroll() / charge_reroll() -> Reroll payment (used by QuestService)
    - credit_gold() -> Add gold to the player
    - reset_daily_rerolls() -> Zero the reroll counter (day boundary)
    - unlock_class() -> Buy a class and generate its Daily quests
    - unlock_slot() -> Buy a Daily quest slot for a class
    - get_slot_rules() -> Slot costs and level gates
    """

    def __init__(
        self,
        database: Any,
        config_manager: Any,
        event_bus: Any,
        logger: Any,
        *,
        generation: QuestGenerationService,
        **kwargs: Any,
    ) -> None:
        super().__init__(database, config_manager, event_bus, logger, **kwargs)
        self._generation = generation
        self._user_repo = UserRepository(
            model_class=User,
            logger=get_logger(f"{__name__}.UserRepository"),
        )
        self._class_repo = CharacterClassRepository(
            model_class=CharacterClass,
            logger=get_logger(f"{__name__}.CharacterClassRepository"),
        )
        self._slot_rules: Dict[SlotId, SlotRule] = build_slot_rules(config_manager)

    # ========================================================================
    # Rerolls
    # ========================================================================

    def reroll_cost_for(self, reroll_count: int) -> int:
        tiers: List[int] = self.get_config("economy.reroll_costs", required=True)
        return reroll_cost(reroll_count, tiers)

    async def get_reroll_cost(self, *, session: Optional[AsyncSession] = None) -> int:
        """Price of the next reroll today."""
        async with self._read(session) as s:
            user = await self._user_repo.get_player(s)
            return self.reroll_cost_for(user.daily_reroll_count)

    async def quote_reroll(self, *, session: AsyncSession) -> int:
        """
        Price of the next reroll, checked against the balance.

        Raises:
            InsufficientFundsError: If gold is below the price
        """
        user = await self._user_repo.get_player(session, for_update=True)
        cost = self.reroll_cost_for(user.daily_reroll_count)
        if user.gold < cost:
            raise InsufficientFundsError(cost, user.gold, "reroll")
        return cost

    async def charge_reroll(self, *, session: AsyncSession) -> Dict[str, int]:
        """
        Charge one reroll and advance the counter.

        Returns:
            Dict with keys: cost, gold, daily_reroll_count
        """
        cost = await self.quote_reroll(session=session)
        user = await self._user_repo.get_player(session, for_update=True)
        user.gold -= cost
        user.daily_reroll_count += 1

        self.log.info(
            f"Reroll charged: {cost} gold",
            extra={
                "cost": cost,
                "gold": user.gold,
                "daily_reroll_count": user.daily_reroll_count,
            },
        )
        return {
            "cost": cost,
            "gold": user.gold,
            "daily_reroll_count": user.daily_reroll_count,
        }

    async def reset_daily_rerolls(self, *, session: Optional[AsyncSession] = None) -> None:
        async with self._unit_of_work(session) as s:
            user = await self._user_repo.get_player(s, for_update=True)
            user.daily_reroll_count = 0
            user.last_reroll_reset = self.now()

    # ========================================================================
    # Gold
    # ========================================================================

    async def credit_gold(
        self,
        amount: int,
        *,
        reason: str,
        session: Optional[AsyncSession] = None,
    ) -> int:
        """Add gold to the player; returns the new balance."""
        self.validate_non_negative_int(amount, "amount")

        async with self._unit_of_work(session) as s:
            user = await self._user_repo.get_player(s, for_update=True)
            user.gold += amount
            self.log.debug(
                f"Gold credited: +{amount}",
                extra={"amount": amount, "reason": reason, "gold": user.gold},
            )
            return user.gold

    def _debit(self, user: User, cost: int, action: str) -> None:
        if user.gold < cost:
            raise InsufficientFundsError(cost, user.gold, action)
        user.gold -= cost

    # ========================================================================
    # Unlocks
    # ========================================================================

    async def unlock_class(
        self, class_id: str, *, session: Optional[AsyncSession] = None
    ) -> Dict[str, Any]:
        """
        Unlock a class for the flat class price and generate its Daily quests.

        Raises:
            NotFoundError: If the class does not exist
            AlreadyUnlockedError: If the class is already unlocked
            InsufficientFundsError: If gold is below the price
        """
        cost = int(self.get_config("economy.class_unlock_cost", required=True))
        self.log_operation("unlock_class", class_id=class_id, cost=cost)

        async with self._unit_of_work(session) as s:
            character = await self._class_repo.get_for_update(s, class_id)
            if character is None:
                raise NotFoundError("CharacterClass", class_id)
            if character.is_unlocked:
                raise AlreadyUnlockedError("Class", class_id)

            user = await self._user_repo.get_player(s, for_update=True)
            self._debit(user, cost, "class unlock")

            character.is_unlocked = True
            character.unlocked_at = self.now()

            quests = await self._generation.generate_daily_quests_for_class(class_id, session=s)

            await self.emit_event(
                EVENT_CLASS_UNLOCKED,
                {"class_id": class_id, "cost": cost, "gold": user.gold},
            )
            self.log.info(
                f"Class unlocked: {class_id}",
                extra={"class_id": class_id, "cost": cost, "gold": user.gold},
            )
            return {
                "class_id": class_id,
                "cost": cost,
                "gold": user.gold,
                "quests_generated": len(quests),
            }

    async def unlock_slot(
        self,
        class_id: str,
        slot: SlotId | str,
        *,
        session: Optional[AsyncSession] = None,
    ) -> Dict[str, Any]:
        """
        Buy an extra Daily quest slot for a class.

        Raises:
            ValidationError: If the slot id is unknown
            NotFoundError: If the class does not exist
            PreconditionUnmetError: If the class is locked or below the level gate
            AlreadyUnlockedError: If the slot is already unlocked
            InsufficientFundsError: If gold is below the price
        """
        try:
            slot_id = SlotId(slot)
        except ValueError as exc:
            raise ValidationError("slot", f"unknown slot {slot!r}") from exc

        rule = self._slot_rules[slot_id]
        self.log_operation("unlock_slot", class_id=class_id, slot=slot_id.value, cost=rule.cost)

        async with self._unit_of_work(session) as s:
            character = await self._class_repo.get_for_update(s, class_id)
            if character is None:
                raise NotFoundError("CharacterClass", class_id)
            if not character.is_unlocked:
                raise PreconditionUnmetError(
                    f"unlock {slot_id.value}",
                    f"class {class_id} is locked",
                    class_id=class_id,
                )
            if character.level < rule.level_requirement:
                raise PreconditionUnmetError(
                    f"unlock {slot_id.value}",
                    f"class must be level {rule.level_requirement} (is {character.level})",
                    class_id=class_id,
                    required_level=rule.level_requirement,
                    current_level=character.level,
                )
            if rule.is_unlocked(character):
                raise AlreadyUnlockedError(slot_id.value, class_id)

            user = await self._user_repo.get_player(s, for_update=True)
            self._debit(user, rule.cost, f"{slot_id.value} unlock")

            rule.mark_unlocked(character)
            character.daily_quest_slots = BASE_DAILY_SLOTS + unlocked_slot_count(character)

            await self.emit_event(
                EVENT_CLASS_SLOT_UNLOCKED,
                {
                    "class_id": class_id,
                    "slot": slot_id.value,
                    "cost": rule.cost,
                    "daily_quest_slots": character.daily_quest_slots,
                },
            )
            return {
                "class_id": class_id,
                "slot": slot_id.value,
                "cost": rule.cost,
                "gold": user.gold,
                "daily_quest_slots": character.daily_quest_slots,
            }

    def get_slot_rules(self) -> List[Dict[str, Any]]:
        return [
            {"slot": rule.slot.value, "cost": rule.cost, "level_requirement": rule.level_requirement}
            for rule in self._slot_rules.values()
        ]
