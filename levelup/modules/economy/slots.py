"""
Daily quest slot rules.

One row per purchasable slot: gold cost, class level gate and accessors for
the slot's unlock flag on `CharacterClass`. Costs and gates come from
balance config (``economy.slots.<slot>.cost|level_requirement``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict

from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.enums import SlotId

if TYPE_CHECKING:
    from levelup.core.config.manager import ConfigManager


def _mark_slot3(character: CharacterClass) -> None:
    character.slot3_unlocked = True


def _mark_slot4(character: CharacterClass) -> None:
    character.slot4_unlocked = True


def _mark_slot5(character: CharacterClass) -> None:
    character.slot5_unlocked = True


_FLAG_ACCESSORS: Dict[
    SlotId, tuple[Callable[[CharacterClass], bool], Callable[[CharacterClass], None]]
] = {
    SlotId.SLOT3: (lambda c: c.slot3_unlocked, _mark_slot3),
    SlotId.SLOT4: (lambda c: c.slot4_unlocked, _mark_slot4),
    SlotId.SLOT5: (lambda c: c.slot5_unlocked, _mark_slot5),
}


@dataclass(frozen=True)
class SlotRule:
    slot: SlotId
    cost: int
    level_requirement: int
    is_unlocked: Callable[[CharacterClass], bool]
    mark_unlocked: Callable[[CharacterClass], None]


def build_slot_rules(config: ConfigManager) -> Dict[SlotId, SlotRule]:
    """Slot rule table from balance config."""
    rules: Dict[SlotId, SlotRule] = {}
    for slot, (is_unlocked, mark_unlocked) in _FLAG_ACCESSORS.items():
        rules[slot] = SlotRule(
            slot=slot,
            cost=int(config.require(f"economy.slots.{slot.value}.cost")),
            level_requirement=int(config.require(f"economy.slots.{slot.value}.level_requirement")),
            is_unlocked=is_unlocked,
            mark_unlocked=mark_unlocked,
        )
    return rules


def unlocked_slot_count(character: CharacterClass) -> int:
    return sum(1 for is_unlocked, _ in _FLAG_ACCESSORS.values() if is_unlocked(character))
