"""
Integration Tests for EconomyService
====================================

Test Coverage
-------------
- Reroll pricing and the insufficient-funds path
- Daily reroll counter reset
- Class unlock (gating, payment, Daily generation)
- Slot unlock (check order, payment, slot count invariant)
"""

import pytest

from levelup.database.models.enums import QuestStatus, QuestType, SlotId
from levelup.modules.shared.constants import EVENT_CLASS_SLOT_UNLOCKED, EVENT_CLASS_UNLOCKED
from levelup.modules.shared.exceptions import (
    AlreadyUnlockedError,
    InsufficientFundsError,
    NotFoundError,
    PreconditionUnmetError,
    ValidationError,
)


# ============================================================================
# REROLL PRICING TESTS
# ============================================================================


@pytest.mark.integration
class TestRerollPricing:
    async def test_first_reroll_costs_ten(self, seeded):
        assert await seeded.economy.get_reroll_cost() == 10

    async def test_cost_follows_counter(self, seeded, store):
        await store.update_user(daily_reroll_count=7)

        assert await seeded.economy.get_reroll_cost() == 1600

    async def test_insufficient_funds_leaves_state_unchanged(self, seeded, store):
        """40 gold with two rerolls already today: the third costs 50."""
        # Arrange
        await store.update_user(gold=40, daily_reroll_count=2)
        quest = (await store.active_quests(QuestType.DAILY, "Warrior"))[0]

        # Act
        with pytest.raises(InsufficientFundsError) as exc_info:
            await seeded.quests.reroll_quest(quest.id)

        # Assert
        assert exc_info.value.required == 50
        assert exc_info.value.current == 40
        user = await store.user()
        assert (user.gold, user.daily_reroll_count) == (40, 2)
        after = (await store.quests(class_id="Warrior"))
        reloaded = next(q for q in after if q.id == quest.id)
        assert reloaded.template_id == quest.template_id
        assert reloaded.reroll_count == 0
        assert reloaded.status is QuestStatus.ACTIVE

    async def test_successive_rerolls_escalate(self, seeded, store):
        await store.update_user(gold=1000)
        quest = (await store.active_quests(QuestType.DAILY, "Warrior"))[0]

        first = await seeded.quests.reroll_quest(quest.id)
        second = await seeded.quests.reroll_quest(quest.id)

        assert (first["cost"], second["cost"]) == (10, 25)
        assert second["gold"] == 965
        assert second["daily_reroll_count"] == 2
        assert (await store.user()).gold == 965

    async def test_reset_daily_rerolls(self, seeded, store, clock):
        await store.update_user(daily_reroll_count=4)
        clock.advance(hours=1)

        await seeded.economy.reset_daily_rerolls()

        user = await store.user()
        assert user.daily_reroll_count == 0
        assert user.last_reroll_reset == clock()


# ============================================================================
# CLASS UNLOCK TESTS
# ============================================================================


@pytest.mark.integration
class TestUnlockClass:
    async def test_unlock_generates_daily_quests(self, seeded, store, events):
        # Arrange
        await store.update_user(gold=250)

        # Act
        result = await seeded.economy.unlock_class("Bard")

        # Assert
        assert result == {"class_id": "Bard", "cost": 200, "gold": 50, "quests_generated": 2}
        bard = await store.character("Bard")
        assert bard.is_unlocked is True
        assert bard.unlocked_at is not None
        assert len(await store.active_quests(QuestType.DAILY, "Bard")) == 2
        assert events.payloads(EVENT_CLASS_UNLOCKED)[0]["class_id"] == "Bard"

    async def test_unlock_with_empty_pool(self, seeded, store):
        await store.update_user(gold=200)

        result = await seeded.economy.unlock_class("Chef")

        assert result["quests_generated"] == 0
        assert result["gold"] == 0

    async def test_insufficient_gold(self, seeded, store):
        with pytest.raises(InsufficientFundsError) as exc_info:
            await seeded.economy.unlock_class("Bard")

        assert exc_info.value.required == 200
        assert (await store.character("Bard")).is_unlocked is False
        assert (await store.user()).gold == 100

    async def test_already_unlocked_checked_before_funds(self, seeded, store):
        await store.update_user(gold=0)

        with pytest.raises(AlreadyUnlockedError):
            await seeded.economy.unlock_class("Warrior")

    async def test_unknown_class(self, seeded):
        with pytest.raises(NotFoundError):
            await seeded.economy.unlock_class("Necromancer")


# ============================================================================
# SLOT UNLOCK TESTS
# ============================================================================


@pytest.mark.integration
class TestUnlockSlot:
    async def test_unlock_slot3(self, seeded, store, events):
        # Arrange
        await store.update_class("Warrior", level=5)

        # Act
        result = await seeded.economy.unlock_slot("Warrior", SlotId.SLOT3)

        # Assert
        assert result["cost"] == 50
        assert result["gold"] == 50
        assert result["daily_quest_slots"] == 3
        warrior = await store.character("Warrior")
        assert warrior.slot3_unlocked is True
        assert warrior.daily_quest_slots == 3
        assert events.payloads(EVENT_CLASS_SLOT_UNLOCKED)[0]["slot"] == "slot3"

    async def test_slot_accepts_string_id(self, seeded, store):
        await store.update_class("Ranger", level=5)

        result = await seeded.economy.unlock_slot("Ranger", "slot3")

        assert result["slot"] == "slot3"

    async def test_level_gate(self, seeded, store):
        await store.update_class("Warrior", level=4)

        with pytest.raises(PreconditionUnmetError):
            await seeded.economy.unlock_slot("Warrior", SlotId.SLOT3)

        assert (await store.user()).gold == 100

    async def test_locked_class(self, seeded, store):
        await store.update_class("Bard", level=20)

        with pytest.raises(PreconditionUnmetError):
            await seeded.economy.unlock_slot("Bard", SlotId.SLOT3)

    async def test_already_unlocked(self, seeded, store):
        await store.update_class("Warrior", level=5)
        await seeded.economy.unlock_slot("Warrior", SlotId.SLOT3)

        with pytest.raises(AlreadyUnlockedError):
            await seeded.economy.unlock_slot("Warrior", SlotId.SLOT3)

        assert (await store.user()).gold == 50

    async def test_underfunded(self, seeded, store):
        await store.update_class("Warrior", level=10)
        await store.update_user(gold=99)

        with pytest.raises(InsufficientFundsError):
            await seeded.economy.unlock_slot("Warrior", SlotId.SLOT4)

        assert (await store.character("Warrior")).slot4_unlocked is False

    async def test_unknown_slot(self, seeded):
        with pytest.raises(ValidationError):
            await seeded.economy.unlock_slot("Warrior", "slot9")

    async def test_slot_count_invariant(self, seeded, store):
        """daily_quest_slots == 2 + number of unlocked slot flags."""
        await store.update_class("Warrior", level=15)
        await store.update_user(gold=1000)

        await seeded.economy.unlock_slot("Warrior", SlotId.SLOT5)
        await seeded.economy.unlock_slot("Warrior", SlotId.SLOT3)

        warrior = await store.character("Warrior")
        assert warrior.daily_quest_slots == 4
        assert (warrior.slot3_unlocked, warrior.slot4_unlocked, warrior.slot5_unlocked) == (
            True,
            False,
            True,
        )

    async def test_new_slot_filled_at_next_regeneration(self, seeded, store):
        await store.update_class("Warrior", level=5)
        await seeded.economy.unlock_slot("Warrior", SlotId.SLOT3)

        await seeded.generation.generate_daily_quests()

        assert len(await store.active_quests(QuestType.DAILY, "Warrior")) == 3

    def test_slot_rules(self, config_manager):
        from levelup.modules.economy.slots import build_slot_rules

        rules = build_slot_rules(config_manager)

        assert [(r.cost, r.level_requirement) for r in rules.values()] == [
            (50, 5),
            (100, 10),
            (150, 15),
        ]
