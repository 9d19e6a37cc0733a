"""Synchronous event bus for handing frame results to collaborators.

The engine publishes one event per tick; exporters, monitors and visual
effect layers subscribe without the physics core knowing about them.

Typical usage example:
    from hydroprop.core.event_bus import EventBus, EventPriority
    from hydroprop.physics.hydrodynamics import FrameEvent

    bus = EventBus()
    bus.subscribe(FrameEvent, on_frame, EventPriority.HIGH)
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class EventPriority(Enum):
    """Priority levels for event handlers, executed CRITICAL first."""

    CRITICAL = auto()
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()


@dataclass
class Event:
    """Base class for all events.

    Attributes:
        timestamp: Wall-clock time when the event was created.
    """

    timestamp: float = field(default_factory=time.time)


class EventBus:
    """Central event bus for synchronous event dispatch.

    Handlers run in the publisher's thread, in priority order. A handler
    exception propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[tuple[Callable[[Any], None], EventPriority]]] = {}

    def subscribe(
        self,
        event_type: type[Event],
        handler: Callable[[Any], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The class of event to subscribe to.
            handler: Callable that accepts the event as its only parameter.
            priority: Priority level for this handler.
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append((handler, priority))
        handlers.sort(key=lambda x: x[1].value)

    def unsubscribe(self, event_type: type[Event], handler: Callable[[Any], None]) -> None:
        """Unsubscribe a handler. Unknown handlers are ignored."""
        if event_type in self._handlers:
            self._handlers[event_type] = [
                (h, p) for h, p in self._handlers[event_type] if h != handler
            ]
            if not self._handlers[event_type]:
                del self._handlers[event_type]

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers of its exact type."""
        for handler, _ in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all event handlers."""
        self._handlers.clear()

    def get_subscriber_count(self, event_type: type[Event]) -> int:
        """Get the number of subscribers for an event type."""
        return len(self._handlers.get(event_type, []))
