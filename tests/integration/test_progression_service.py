"""
Integration Tests for ProgressionService
========================================

Test Coverage
-------------
- XP awards with single and multiple level-ups
- Max level pinning
- Validation and missing classes
- Level-up events and lifetime XP
"""

import pytest

from levelup.modules.shared.constants import EVENT_CLASS_LEVELED_UP
from levelup.modules.shared.exceptions import NotFoundError, ValidationError


@pytest.mark.integration
class TestAwardXP:
    async def test_multi_level_award(self, seeded, store, events):
        # Act
        result = await seeded.progression.award_xp("Warrior", 250)

        # Assert
        assert result["old_level"] == 1
        assert result["new_level"] == 3
        assert result["levels_gained"] == 2
        assert result["current_xp"] == 50
        assert result["xp_to_next_level"] == 300

        warrior = await store.character("Warrior")
        assert (warrior.level, warrior.current_xp, warrior.xp_to_next_level) == (3, 50, 300)
        assert events.payloads(EVENT_CLASS_LEVELED_UP) == [
            {"class_id": "Warrior", "old_level": 1, "new_level": 3, "levels_gained": 2}
        ]

    async def test_small_award_no_level_up(self, seeded, events):
        result = await seeded.progression.award_xp("Ranger", 40)

        assert result["leveled_up"] is False
        assert result["current_xp"] == 40
        assert EVENT_CLASS_LEVELED_UP not in events.names()

    async def test_zero_award_allowed(self, seeded):
        result = await seeded.progression.award_xp("Mage", 0)

        assert result["new_level"] == 1
        assert result["current_xp"] == 0

    async def test_reaching_max_level_pins_bar(self, seeded, store):
        await store.update_class("Warrior", level=99, current_xp=9000, xp_to_next_level=9900)

        result = await seeded.progression.award_xp("Warrior", 50_000)

        assert result["new_level"] == 100
        assert (result["current_xp"], result["xp_to_next_level"]) == (0, 0)

    async def test_award_at_max_level_discarded(self, seeded, store):
        await store.update_class("Warrior", level=100, current_xp=0, xp_to_next_level=0)

        result = await seeded.progression.award_xp("Warrior", 500)

        assert result["leveled_up"] is False
        assert (result["new_level"], result["current_xp"]) == (100, 0)

    async def test_negative_award_rejected(self, seeded):
        with pytest.raises(ValidationError):
            await seeded.progression.award_xp("Warrior", -5)

    async def test_unknown_class(self, seeded):
        with pytest.raises(NotFoundError):
            await seeded.progression.award_xp("Necromancer", 10)

    async def test_locked_class_can_receive_xp(self, seeded):
        result = await seeded.progression.award_xp("Bard", 100)

        assert result["new_level"] == 2

    async def test_multi_level_award_above_level_one(self, seeded, store):
        await store.update_class("Mage", level=2, current_xp=0, xp_to_next_level=200)

        result = await seeded.progression.award_xp("Mage", 450)

        assert (result["new_level"], result["current_xp"], result["xp_to_next_level"]) == (
            4,
            50,
            400,
        )


@pytest.mark.integration
class TestLifetimeXP:
    async def test_add_lifetime_xp(self, seeded, store):
        total = await seeded.progression.add_lifetime_xp(30)
        total = await seeded.progression.add_lifetime_xp(12)

        assert total == 42
        assert (await store.user()).total_xp == 42

    async def test_get_class_progress(self, seeded):
        await seeded.progression.award_xp("Mage", 130)

        progress = await seeded.progression.get_class_progress("Mage")

        assert progress == {
            "class_id": "Mage",
            "level": 2,
            "current_xp": 30,
            "xp_to_next_level": 200,
        }
