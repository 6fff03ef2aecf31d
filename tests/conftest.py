"""
Pytest Configuration and Fixtures for LevelUp Tests
===================================================

Purpose
-------
Shared fixtures for the LevelUp test suite: a fresh in-memory SQLite store
per test, balance configuration, an event bus with a recorder, a small known
quest catalog, a controllable clock and a seeded random source, all wired
through the real `ServiceContainer`.

Architecture Notes
------------------
- Unit tests use pure functions or the event bus directly (no storage).
- Integration tests run services against `sqlite+aiosqlite://`; every test
  gets its own engine, so state never leaks between tests.
- Tests override `balance_overrides` or `catalog_templates` in their own
  module to change balance numbers or catalog content.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

import pytest
import pytest_asyncio
from sqlalchemy import select

import levelup.database.models  # noqa: F401  (registers tables on Base.metadata)
from levelup.core.config.manager import ConfigManager
from levelup.core.database.service import DatabaseService
from levelup.core.event.bus import EventBus
from levelup.core.event.types import ListenerPriority
from levelup.core.logging.logger import get_logger
from levelup.core.services.container import ServiceContainer
from levelup.database.models.core.character_class import CharacterClass
from levelup.database.models.core.user import PLAYER_ID, User
from levelup.database.models.enums import QuestStatus, QuestType
from levelup.database.models.progression.quest_instance import QuestInstance
from levelup.database.models.progression.quest_template import QuestTemplate
from levelup.modules.catalog.source import StaticCatalog
from levelup.modules.shared import constants

# Wednesday. The Sunday-anchored week runs 2024-03-03 .. 2024-03-10.
FIXED_NOW = datetime(2024, 3, 6, 10, 0)


# ============================================================================
# CATALOG DATA
# ============================================================================

TEST_CLASS_CONFIG: Dict[str, Dict[str, Any]] = {
    "Warrior": {"color": "red", "icon": "sword"},
    "Ranger": {"color": "green", "icon": "bow"},
    "Mage": {"color": "blue", "icon": "wand"},
    "Bard": {"color": "yellow", "icon": "lute"},
    "Chef": {"color": "orange", "icon": "pan"},
    "Weekly": {"color": "purple", "icon": "calendar"},
}


def _daily(title: str, class_id: str, xp: int, gold: int, **fields: Any) -> Dict[str, Any]:
    record = {
        "title": title,
        "description": f"{title} description",
        "type": "Daily",
        "class": class_id,
        "base_xp": xp,
        "base_gold": gold,
        "enabled": True,
        "scaling": False,
    }
    record.update(fields)
    return record


def build_test_templates() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "Warrior": [
            _daily(
                "Push-ups", "Warrior", 20, 10,
                scaling=True, level1_requirements="10", level100_requirements="100",
            ),
            _daily("Squats", "Warrior", 20, 10, requirement="20"),
            _daily("Plank", "Warrior", 30, 15, requirement="2 minutes"),
            _daily("Run", "Warrior", 50, 25, requirement="1"),
        ],
        "Ranger": [
            _daily("Walk", "Ranger", 10, 5, requirement="1"),
            _daily("Hike", "Ranger", 10, 5, requirement="1"),
            _daily("Stretch", "Ranger", 10, 5, requirement="1"),
        ],
        "Mage": [
            _daily("Read", "Mage", 20, 10, requirement="a few"),
            _daily("Study", "Mage", 20, 10, requirement="3"),
            _daily("Puzzle", "Mage", 10, 5),
        ],
        "Bard": [
            _daily("Sing", "Bard", 10, 5, requirement="1"),
            _daily("Practice", "Bard", 10, 5, requirement="1"),
        ],
        "Chef": [],
        "Weekly": [
            {
                "title": "Deep clean",
                "description": "Clean the whole flat.",
                "type": "Weekly",
                "base_xp": 100,
                "base_gold": 50,
                "requirement": "1",
            }
        ],
    }


TEST_TEMPLATE_COUNT = 13
STARTER_CLASSES = ("Warrior", "Ranger", "Mage")


# ============================================================================
# TEST DOUBLES
# ============================================================================


class MutableClock:
    """Injectable clock; tests move time explicitly."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current

    def set(self, moment: datetime) -> None:
        self.current = moment


class EventRecorder:
    """Subscribes to domain events and keeps `(name, payload)` pairs in order."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self.received: List[tuple[str, Dict[str, Any]]] = []

    def listen(self, *event_names: str) -> None:
        for name in event_names:
            self._bus.subscribe(
                name,
                self._recorder_for(name),
                priority=ListenerPriority.CRITICAL,
                identifier=f"test_recorder@{name}",
            )

    def _recorder_for(self, name: str):
        async def record(payload: Dict[str, Any]) -> None:
            self.received.append((name, payload))

        return record

    def names(self) -> List[str]:
        return [name for name, _ in self.received]

    def payloads(self, event_name: str) -> List[Dict[str, Any]]:
        return [payload for name, payload in self.received if name == event_name]


class StoreHelper:
    """Direct reads and writes against the store, bypassing the services."""

    def __init__(self, database: DatabaseService) -> None:
        self._db = database

    async def user(self) -> User:
        async with self._db.get_session() as session:
            user = await session.get(User, PLAYER_ID)
            assert user is not None
            return user

    async def character(self, class_id: str) -> CharacterClass:
        async with self._db.get_session() as session:
            character = await session.get(CharacterClass, class_id)
            assert character is not None
            return character

    async def update_user(self, **fields: Any) -> None:
        async with self._db.get_transaction() as session:
            user = await session.get(User, PLAYER_ID)
            for name, value in fields.items():
                setattr(user, name, value)

    async def update_class(self, class_id: str, **fields: Any) -> None:
        async with self._db.get_transaction() as session:
            character = await session.get(CharacterClass, class_id)
            for name, value in fields.items():
                setattr(character, name, value)

    async def update_quest(self, quest_id: int, **fields: Any) -> None:
        async with self._db.get_transaction() as session:
            quest = await session.get(QuestInstance, quest_id)
            for name, value in fields.items():
                setattr(quest, name, value)

    async def quests(
        self,
        quest_type: Optional[QuestType] = None,
        class_id: Optional[str] = None,
        statuses: Optional[Sequence[QuestStatus]] = None,
    ) -> List[QuestInstance]:
        stmt = select(QuestInstance).order_by(QuestInstance.id)
        if quest_type is not None:
            stmt = stmt.where(QuestInstance.type == quest_type)
        if class_id is not None:
            stmt = stmt.where(QuestInstance.class_id == class_id)
        if statuses is not None:
            stmt = stmt.where(QuestInstance.status.in_(list(statuses)))
        async with self._db.get_session() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def active_quests(
        self, quest_type: QuestType = QuestType.DAILY, class_id: Optional[str] = None
    ) -> List[QuestInstance]:
        return await self.quests(quest_type, class_id, [QuestStatus.ACTIVE])

    async def templates(
        self, quest_type: Optional[QuestType] = None, class_id: Optional[str] = None
    ) -> List[QuestTemplate]:
        stmt = select(QuestTemplate).order_by(QuestTemplate.id)
        if quest_type is not None:
            stmt = stmt.where(QuestTemplate.type == quest_type)
        if class_id is not None:
            stmt = stmt.where(QuestTemplate.class_id == class_id)
        async with self._db.get_session() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def template_by_title(self, title: str) -> QuestTemplate:
        async with self._db.get_session() as session:
            result = await session.execute(
                select(QuestTemplate).where(QuestTemplate.title == title)
            )
            return result.scalars().one()


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(FIXED_NOW)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def balance_overrides() -> Dict[str, Any]:
    """Override in a test module to change balance numbers."""
    return {}


@pytest.fixture
def config_manager(balance_overrides: Dict[str, Any]) -> ConfigManager:
    return ConfigManager(overrides=balance_overrides)


@pytest.fixture
def event_bus(config_manager: ConfigManager) -> EventBus:
    return EventBus(config_manager)


@pytest.fixture
def events(event_bus: EventBus) -> EventRecorder:
    recorder = EventRecorder(event_bus)
    recorder.listen(
        constants.EVENT_QUEST_PROGRESS_UPDATED,
        constants.EVENT_QUEST_COMPLETED,
        constants.EVENT_QUEST_REROLLED,
        constants.EVENT_CLASS_LEVELED_UP,
        constants.EVENT_CLASS_UNLOCKED,
        constants.EVENT_CLASS_SLOT_UNLOCKED,
        constants.EVENT_DAILY_GENERATED,
        constants.EVENT_WEEKLY_GENERATED,
        constants.EVENT_WEEKLY_COLLECTED,
        constants.EVENT_CATALOG_SYNCED,
        constants.EVENT_TEMPLATE_CREATED,
        constants.EVENT_TICK_COMPLETED,
    )
    return recorder


@pytest.fixture
def catalog_templates() -> Dict[str, List[Dict[str, Any]]]:
    """Override in a test module to change catalog content."""
    return build_test_templates()


@pytest.fixture
def catalog(catalog_templates: Dict[str, List[Dict[str, Any]]]) -> StaticCatalog:
    return StaticCatalog(
        class_config=TEST_CLASS_CONFIG,
        templates=catalog_templates,
        user_defaults={"gold": 100},
    )


# ============================================================================
# STORAGE & SERVICES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseService, None]:
    """
    Fresh in-memory store with the schema created.

    Scope: function (clean slate per test)
    """
    db = DatabaseService("sqlite+aiosqlite://", echo=False)
    await db.initialize()
    await db.create_all()
    yield db
    await db.shutdown()


@pytest.fixture
def store(database: DatabaseService) -> StoreHelper:
    return StoreHelper(database)


@pytest_asyncio.fixture
async def container(
    database: DatabaseService,
    config_manager: ConfigManager,
    event_bus: EventBus,
    catalog: StaticCatalog,
    clock: MutableClock,
    rng: random.Random,
) -> AsyncGenerator[ServiceContainer, None]:
    """All services wired against the in-memory store (not yet seeded)."""
    services = ServiceContainer(
        database,
        config_manager,
        event_bus,
        get_logger("tests.container"),
        catalog=catalog,
        clock=clock,
        rng=rng,
        maintenance_interval_seconds=3600,
    )
    await services.initialize()
    yield services
    await services.shutdown()


@pytest_asyncio.fixture
async def seeded(container: ServiceContainer) -> ServiceContainer:
    """Container whose store went through first-run initialization."""
    await container.guard.ensure_initialized()
    return container
