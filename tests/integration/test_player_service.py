"""
Integration Tests for PlayerService
===================================

Test Coverage
-------------
- Profile and class roster reads
- Class ordering for the home and quests views
- Weekly card position
- Class order validation
"""

import pytest

from levelup.modules.shared.exceptions import NotFoundError, ValidationError


@pytest.mark.integration
class TestReads:
    async def test_get_user(self, seeded, clock):
        user = await seeded.player.get_user()

        assert user["gold"] == 100
        assert user["created_at"] == clock()
        assert user["class_order"][0] == "Warrior"

    async def test_get_class(self, seeded):
        mage = await seeded.player.get_class("Mage")

        assert mage["is_unlocked"] is True
        assert mage["daily_quest_slots"] == 2

    async def test_get_unknown_class(self, seeded):
        with pytest.raises(NotFoundError):
            await seeded.player.get_class("Necromancer")


# ============================================================================
# ORDERING TESTS
# ============================================================================


@pytest.mark.integration
class TestClassOrdering:
    async def test_home_view_puts_unlocked_first(self, seeded):
        # Arrange
        await seeded.player.update_class_order(
            ["Bard", "Weekly", "Mage", "Chef", "Warrior", "Ranger"]
        )

        # Act
        ordered = await seeded.player.get_sorted_classes("home")

        # Assert
        assert [c["id"] for c in ordered] == ["Mage", "Warrior", "Ranger", "Bard", "Chef"]

    async def test_quests_view_follows_user_order(self, seeded):
        await seeded.player.update_class_order(
            ["Bard", "Weekly", "Mage", "Chef", "Warrior", "Ranger"]
        )

        ordered = await seeded.player.get_sorted_classes("quests")

        assert [c["id"] for c in ordered] == ["Bard", "Mage", "Chef", "Warrior", "Ranger"]

    async def test_classes_missing_from_order_go_last(self, seeded):
        await seeded.player.update_class_order(["Ranger", "Weekly"])

        ordered = await seeded.player.get_sorted_classes("quests")

        assert [c["id"] for c in ordered] == ["Ranger", "Bard", "Chef", "Mage", "Warrior"]

    async def test_unknown_view_mode(self, seeded):
        with pytest.raises(ValidationError):
            await seeded.player.get_sorted_classes("sideways")

    async def test_weekly_position(self, seeded):
        await seeded.player.update_class_order(["Warrior", "Ranger", "Mage", "Weekly", "Bard"])

        assert await seeded.player.get_weekly_position() == 3

    async def test_weekly_position_absent(self, seeded):
        await seeded.player.update_class_order(["Warrior", "Ranger"])

        assert await seeded.player.get_weekly_position() == -1


# ============================================================================
# VALIDATION TESTS
# ============================================================================


@pytest.mark.integration
class TestUpdateClassOrder:
    async def test_order_persisted(self, seeded, store):
        await seeded.player.update_class_order(["Mage", "Weekly"])

        assert (await store.user()).class_order == ["Mage", "Weekly"]

    async def test_duplicates_rejected(self, seeded, store):
        with pytest.raises(ValidationError):
            await seeded.player.update_class_order(["Mage", "Mage"])

        assert (await store.user()).class_order[0] == "Warrior"

    async def test_unknown_ids_rejected(self, seeded):
        with pytest.raises(ValidationError):
            await seeded.player.update_class_order(["Mage", "Necromancer"])
