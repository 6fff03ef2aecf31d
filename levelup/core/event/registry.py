"""
Listener storage for the EventBus.

Subscriptions are kept per exact event name. Lookups are always sorted by
`(priority, identifier)` so execution order is deterministic.
"""

from __future__ import annotations

from levelup.core.event.types import EventListener


def _sort_key(listener: EventListener) -> tuple[int, str]:
    return (listener.priority.value, listener.identifier)


class ListenerRegistry:
    """Per-event listener storage."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def add_listener(
        self,
        event_name: str,
        listener: EventListener,
        *,
        allow_duplicates: bool,
    ) -> bool:
        """Register a listener. Returns False when prevented as a duplicate."""
        listeners = self._listeners.setdefault(event_name, [])
        if not allow_duplicates and any(
            lst.identifier == listener.identifier for lst in listeners
        ):
            return False
        listeners.append(listener)
        listeners.sort(key=_sort_key)
        return True

    def remove_listener(self, event_name: str, identifier: str) -> bool:
        if event_name not in self._listeners:
            return False

        before = len(self._listeners[event_name])
        self._listeners[event_name] = [
            lst for lst in self._listeners[event_name] if lst.identifier != identifier
        ]
        removed = len(self._listeners[event_name]) < before
        if not self._listeners[event_name]:
            del self._listeners[event_name]
        return removed

    def clear_all(self) -> int:
        total = self.get_total_listener_count()
        self._listeners.clear()
        return total

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def listeners_for_event(self, event_name: str) -> list[EventListener]:
        """Snapshot of an event's listeners, in execution order."""
        return list(self._listeners.get(event_name, []))

    def get_listener_count_for_event(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    def get_total_listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())
