"""
Core event types for the LevelUp EventBus.

Priority Levels
---------------
- CRITICAL (0): sequential, awaited, timeout-protected.
- HIGH (10): sequential, awaited, timeout-protected.
- NORMAL (50): concurrent (asyncio.gather), awaited.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    """Listener execution tier; lower values run first."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(frozen=True)
class EventListener:
    """
    A registered listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        Execution tier.
    identifier:
        Unique id used for deduplication and unsubscription.
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str],
    ) -> EventListener:
        """Build a listener, deriving `module.qualname@event` when no identifier is given."""
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(callback, "__qualname__", getattr(callback, "__name__", "callback"))
            identifier = f"{module}.{qualname}@{event_name}"

        return cls(callback=callback, priority=priority, identifier=identifier)
