"""In-process event bus."""

from levelup.core.event.bus import EventBus
from levelup.core.event.types import EventListener, EventPayload, ListenerPriority

__all__ = ["EventBus", "EventListener", "EventPayload", "ListenerPriority"]
