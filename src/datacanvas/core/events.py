"""Synchronous event bus for canvas observability.

The GraphStore publishes GraphChanged after every committed mutation and
the Workspace publishes UserNotice for rejected actions. The presentation
layer subscribes; the core never depends on who is listening.
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Interface shared by EventBus and NullEventBus (no inheritance)."""

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an event type."""
        ...

    def emit(self, event: T) -> None:
        """Emit an event to all subscribers."""
        ...


class EventBus:
    """Dispatches events synchronously, in subscription order.

    Handler exceptions propagate to the emitter. Handlers are application
    code, so a failing handler is a bug that should surface.

    Example:
        bus = EventBus()
        bus.subscribe(GraphChanged, lambda e: redraw(e.graph))
        store = GraphStore(event_bus=bus)
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Subscribe a handler to an exact event type (subclasses are not matched)."""
        self._subscribers.setdefault(event_type, []).append(handler)

    def emit(self, event: T) -> None:
        """Emit an event; events nobody subscribed to are ignored."""
        for handler in self._subscribers.get(type(event), []):
            handler(event)


class NullEventBus:
    """No-op bus for headless use where nobody observes the canvas.

    Deliberately not an EventBus subclass: subscribing here never delivers,
    and a type checker should flag code that expects it to.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """No-op subscription - handler will never be called."""
        pass

    def emit(self, event: T) -> None:
        """No-op emission."""
        pass
