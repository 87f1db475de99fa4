"""Event targets and the EventHub listener-registration primitive.

An ``EventTarget`` is anything that dispatches named events (an HTTP
request finishing, for example). An ``EventHub`` binds one owner to one
target and manages that owner's registrations on it:

- at most one attachment per event type, however often ``register`` is
  called;
- optional "once" registrations that detach themselves after the first
  delivery.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from resource_loader.errors import require


@dataclass
class Event:
    """An event dispatched by an EventTarget.

    Attributes:
        type: Event name, e.g. "load" or "error".
        target: The target that dispatched the event (set on dispatch).
        detail: Optional payload describing the event.
    """

    type: str
    target: Optional["EventTarget"] = field(default=None, repr=False)
    detail: Any = None


EventCallback = Callable[[Event], None]


class EventTarget:
    """Minimal dispatch target holding per-type callback lists."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[EventCallback]] = {}

    def add_event_listener(self, type: str, listener: EventCallback) -> None:
        """Attach a callback for an event type (duplicates are ignored)."""
        listeners = self._listeners.setdefault(type, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(
        self, type: str, listener: EventCallback
    ) -> None:
        """Detach a callback; unknown callbacks are ignored."""
        listeners = self._listeners.get(type, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, type: str) -> int:
        """Number of callbacks currently attached for an event type."""
        return len(self._listeners.get(type, []))

    def dispatch_event(self, event: Event) -> None:
        """Deliver an event to every callback attached for its type."""
        event.target = self
        for listener in list(self._listeners.get(event.type, [])):
            listener(event)


class HubListener(Protocol):
    """Receives the events an EventHub is registered for."""

    def handle_event(self, hub: "EventHub", type: str, event: Event) -> None:
        """Called once per delivered event."""
        ...


@dataclass
class EventContext:
    """Registration state for one event type on an EventHub."""

    once: bool = False


class EventHub:
    """Registers one owner's interest in events on one target.

    Example:
        >>> hub = EventHub(request, loader)
        >>> hub.register("load", once=True)
        >>> request.send()  # loader.handle_event(hub, "load", event) fires
    """

    def __init__(self, target: EventTarget, listener: HubListener) -> None:
        self.target = target
        self._listener = listener
        self._events: Dict[str, EventContext] = {}

    def is_registered(self, type: str) -> bool:
        """Whether an active registration exists for an event type."""
        return type in self._events

    def register(self, type: str, once: bool = False) -> None:
        """Start listening for an event type.

        Does nothing if the type is already registered; in particular the
        existing ``once`` flag is kept.

        Args:
            type: Event name.
            once: Detach automatically after the first delivery.
        """
        if type in self._events:
            return
        self._events[type] = EventContext(once=once)
        self.target.add_event_listener(type, self._dispatch)

    def unregister(self, type: str) -> None:
        """Stop listening for an event type.

        Raises:
            AssertionError: If the type is not registered.
        """
        require(type in self._events, f"'{type}' is not registered")
        del self._events[type]
        self.target.remove_event_listener(type, self._dispatch)

    def _dispatch(self, event: Event) -> None:
        context = self._events.get(event.type)
        if context is None:
            raise AssertionError(f"'{event.type}' is not registered")
        self._listener.handle_event(self, event.type, event)
        if context.once and self._events.get(event.type) is context:
            del self._events[event.type]
            self.target.remove_event_listener(event.type, self._dispatch)
