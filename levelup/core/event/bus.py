"""
In-process publish/subscribe EventBus.

Purpose
-------
Decouple services from each other and from the presentation layer. Services
publish domain events after their unit of work commits (`quest.completed`,
`class.leveled_up`, `quests.daily_generated`...); the presentation layer
publishes `app.foreground`, which the maintenance scheduler listens to.

Design
------
- Tiered concurrency by `ListenerPriority` (see `scheduler.py`).
- Listener errors are isolated and logged; `publish` never raises because of
  a listener.
- CRITICAL/HIGH timeouts come from `core.event.listener_timeout.*`.

Examples
--------
>>> bus = EventBus()
>>> bus.subscribe("class.leveled_up", on_level_up, priority=ListenerPriority.HIGH)
>>> await bus.publish("class.leveled_up", {"class_id": "Warrior", "new_level": 3})
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Optional

from levelup.core.event.registry import ListenerRegistry
from levelup.core.event.scheduler import EventScheduler
from levelup.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from levelup.core.logging.logger import get_logger

if TYPE_CHECKING:
    from levelup.core.config.manager import ConfigManager

logger = get_logger(__name__)


class EventBus:
    """Async event bus with priority tiers."""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        *,
        registry: Optional[ListenerRegistry] = None,
        scheduler: Optional[EventScheduler] = None,
        critical_timeout_seconds: Optional[float] = None,
        high_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._config_manager = config_manager
        self._registry = registry or ListenerRegistry()
        self._scheduler = scheduler or EventScheduler()

        self._critical_timeout = self._load_timeout(
            "core.event.listener_timeout.critical_seconds", critical_timeout_seconds, 5.0
        )
        self._high_timeout = self._load_timeout(
            "core.event.listener_timeout.high_seconds", high_timeout_seconds, 5.0
        )

        logger.debug(
            "EventBus initialized",
            extra={
                "critical_timeout_seconds": self._critical_timeout,
                "high_timeout_seconds": self._high_timeout,
            },
        )

    def _load_timeout(self, key: str, override: Optional[float], default: float) -> float:
        """Resolve a timeout: explicit override, then config, then default."""
        if override is not None:
            return float(override)
        if self._config_manager is None:
            return float(default)

        value = self._config_manager.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Invalid listener timeout in config, using default",
                extra={"config_key": key, "value": value, "default_value": default},
            )
            return float(default)

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        """Reject callbacks that cannot take exactly one positional payload."""
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        if any(p.kind is p.VAR_POSITIONAL for p in sig.parameters.values()):
            return

        params = [
            p
            for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        ]
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", repr(callback))
            raise ValueError(
                "Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        allow_duplicates: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event name.

        Returns the listener identifier for `unsubscribe()`.

        Raises
        ------
        ValueError:
            If the callback signature is invalid.
        """
        self._validate_callback_signature(callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
        )
        added = self._registry.add_listener(
            event_name=event_name, listener=listener, allow_duplicates=allow_duplicates
        )

        if added:
            logger.debug(
                "EventBus: subscribed listener",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                },
            )
        else:
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )

        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        removed = self._registry.remove_listener(event_name=event_name, identifier=identifier)
        if removed:
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )
        return removed

    def clear(self) -> None:
        total = self._registry.clear_all()
        logger.info("EventBus: cleared all listeners", extra={"previous_listener_count": total})

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """Publish an event to its listeners and return their results."""
        listeners = self._registry.listeners_for_event(event_name)

        logger.debug(
            "EventBus: publishing event",
            extra={
                "event_name": event_name,
                "payload_keys": list(data.keys()),
                "listener_count": len(listeners),
            },
        )

        if not listeners:
            return []

        return await self._scheduler.execute(
            event_name=event_name,
            payload=data,
            listeners=listeners,
            logger=logger,
            critical_timeout=self._critical_timeout,
            high_timeout=self._high_timeout,
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is None:
            return self._registry.get_total_listener_count()
        return self._registry.get_listener_count_for_event(event_name)
