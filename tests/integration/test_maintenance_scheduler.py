"""
Integration Tests for MaintenanceScheduler
==========================================

Test Coverage
-------------
- First tick seeds an empty store
- Day boundary: Daily regeneration and reroll counter reset
- Week boundary and the once-per-week weekly bundle check
- Non-overlapping ticks
- Failure isolation (rollback, tick swallowed)
- Lifecycle: start/stop, foreground trigger
"""

import asyncio

import pytest

from levelup.database.models.enums import QuestStatus, QuestType
from levelup.modules.shared.constants import EVENT_APP_FOREGROUND, EVENT_TICK_COMPLETED


async def _make_weekly_eligible(store):
    for class_id in ("Warrior", "Ranger", "Mage"):
        await store.update_class(class_id, level=3, xp_to_next_level=300)


# ============================================================================
# TICK TESTS
# ============================================================================


@pytest.mark.integration
class TestTick:
    async def test_first_tick_seeds_store(self, container, store):
        # Act
        result = await container.scheduler.tick()

        # Assert
        assert result == {"new_day": False, "new_week": False, "weekly_generated": False}
        assert container.guard.is_initialized is True
        assert (await store.user()).gold == 100

    async def test_same_day_tick_changes_nothing(self, seeded, store, clock):
        before = {q.id for q in await store.active_quests()}
        clock.advance(hours=3)

        result = await seeded.scheduler.tick()

        assert result["new_day"] is False
        assert {q.id for q in await store.active_quests()} == before
        assert (await store.user()).last_active == clock()

    async def test_new_day_regenerates_dailies(self, seeded, store, clock):
        # Arrange
        old = await store.active_quests()
        done = [q for q in old if q.class_id == "Ranger"][0]
        await seeded.quests.update_progress(done.id, done.progress_goal)
        await seeded.quests.complete_quest(done.id)
        await store.update_user(daily_reroll_count=3)

        # Act
        clock.advance(days=1)
        result = await seeded.scheduler.tick()

        # Assert
        assert result["new_day"] is True
        assert result["new_week"] is False
        statuses = {q.id: q.status for q in await store.quests(QuestType.DAILY)}
        assert statuses[done.id] is QuestStatus.COMPLETED
        assert all(
            statuses[q.id] is QuestStatus.EXPIRED for q in old if q.id != done.id
        )
        fresh = await store.active_quests()
        assert len(fresh) == 6
        assert all(q.created_at == clock() for q in fresh)
        user = await store.user()
        assert user.daily_reroll_count == 0
        assert user.last_reroll_reset == clock()

    async def test_new_week_generates_bundle(self, seeded, store, clock):
        await _make_weekly_eligible(store)
        await store.update_user(last_weekly_generated=clock())

        clock.advance(days=4)
        result = await seeded.scheduler.tick()

        assert result == {"new_day": True, "new_week": True, "weekly_generated": True}
        assert len(await store.active_quests(QuestType.WEEKLY)) == 5

    async def test_weekly_bundle_ensured_mid_week(self, seeded, store, clock):
        await _make_weekly_eligible(store)
        clock.advance(minutes=1)

        first = await seeded.scheduler.tick()
        second = await seeded.scheduler.tick()

        assert first["weekly_generated"] is True
        assert second["weekly_generated"] is False

    async def test_tick_completed_event(self, seeded, events, clock):
        clock.advance(days=1)

        await seeded.scheduler.tick()

        assert events.payloads(EVENT_TICK_COMPLETED)[-1]["new_day"] is True


# ============================================================================
# CONCURRENCY & FAILURE TESTS
# ============================================================================


@pytest.mark.integration
class TestTickIsolation:
    async def test_overlapping_tick_is_skipped(self, seeded, mocker):
        # Arrange
        release = asyncio.Event()

        async def slow_initialization():
            await release.wait()
            return True

        mocker.patch.object(
            seeded.guard, "ensure_initialized", side_effect=slow_initialization
        )
        scheduler = seeded.scheduler

        # Act
        running = asyncio.create_task(scheduler.tick())
        await asyncio.sleep(0)
        skipped = await scheduler.tick()
        release.set()
        completed = await running

        # Assert
        assert skipped is None
        assert completed is not None
        assert scheduler.ticks_skipped == 1
        assert scheduler.ticks_run == 1

    async def test_failed_tick_rolls_back(self, seeded, store, clock, mocker):
        # Arrange
        await store.update_user(daily_reroll_count=3)
        before = {q.id for q in await store.active_quests()}
        mocker.patch.object(
            seeded.generation,
            "generate_daily_quests",
            side_effect=RuntimeError("template pool unavailable"),
        )
        clock.advance(days=1)

        # Act
        result = await seeded.scheduler.tick()

        # Assert
        assert result is None
        user = await store.user()
        assert user.daily_reroll_count == 3
        assert user.last_active < clock()
        assert {q.id for q in await store.active_quests()} == before

    async def test_next_tick_recovers_after_failure(self, seeded, store, clock, mocker):
        patched = mocker.patch.object(
            seeded.generation,
            "generate_daily_quests",
            side_effect=RuntimeError("template pool unavailable"),
        )
        clock.advance(days=1)
        assert await seeded.scheduler.tick() is None

        mocker.stop(patched)
        result = await seeded.scheduler.tick()

        assert result["new_day"] is True
        assert (await store.user()).daily_reroll_count == 0


# ============================================================================
# LIFECYCLE TESTS
# ============================================================================


@pytest.mark.integration
class TestLifecycle:
    async def test_start_runs_first_tick_and_subscribes(self, container, event_bus, store):
        # Act
        await container.scheduler.start()

        # Assert
        assert container.scheduler.is_running is True
        assert container.scheduler.ticks_run == 1
        assert event_bus.get_listener_count(EVENT_APP_FOREGROUND) == 1
        assert (await store.user()).gold == 100

        await container.scheduler.stop()
        assert container.scheduler.is_running is False
        assert event_bus.get_listener_count(EVENT_APP_FOREGROUND) == 0

    async def test_start_twice_is_noop(self, container, event_bus):
        await container.scheduler.start()
        await container.scheduler.start()

        assert container.scheduler.ticks_run == 1
        assert event_bus.get_listener_count(EVENT_APP_FOREGROUND) == 1

        await container.scheduler.stop()

    async def test_foreground_event_triggers_tick(self, container, event_bus, clock):
        await container.scheduler.start()
        clock.advance(days=1)

        await event_bus.publish(EVENT_APP_FOREGROUND, {"source": "test"})

        assert container.scheduler.ticks_run == 2
        await container.scheduler.stop()

    async def test_interval_from_container(self, container):
        assert container.scheduler.interval_seconds == 3600
