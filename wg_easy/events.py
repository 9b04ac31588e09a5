"""
Synchronous in-process event fan-out.

Handlers are grouped per event type. A failing handler is logged and does
not prevent the remaining handlers from running.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from wg_easy.models import Peer

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Domain events emitted by the client."""

    PEER_CREATED = "peer:created"
    PEER_DELETED = "peer:deleted"
    PEER_UPDATED = "peer:updated"
    PEER_ENABLED = "peer:enabled"
    PEER_DISABLED = "peer:disabled"
    SESSION_LOGIN = "session:login"
    SESSION_LOGOUT = "session:logout"


@dataclass(frozen=True)
class DomainEvent:
    """An emitted event. ``peer`` is None for session events."""

    type: EventType
    peer: Optional[Peer] = None
    timestamp: datetime = field(default_factory=datetime.now)


EventHandler = Callable[[DomainEvent], None]


class EventEmitter:
    """Registry of handler sets keyed by event type."""

    def __init__(self):
        self._handlers: dict[EventType, set[EventHandler]] = {}
        # original handler -> wrapper, per event, for handlers added with once()
        self._once_wrappers: dict[EventType, dict[EventHandler, EventHandler]] = {}

    def on(self, event: EventType, handler: EventHandler) -> None:
        self._handlers.setdefault(EventType(event), set()).add(handler)

    def off(self, event: EventType, handler: EventHandler) -> None:
        event = EventType(event)
        handlers = self._handlers.get(event)
        wrapper = self._once_wrappers.get(event, {}).pop(handler, None)
        if handlers is None:
            return
        handlers.discard(handler)
        if wrapper is not None:
            handlers.discard(wrapper)

    def once(self, event: EventType, handler: EventHandler) -> None:
        """Register a handler that runs for the first matching emit only."""
        event = EventType(event)
        if handler in self._once_wrappers.get(event, {}):
            return
        fired = False

        def wrapper(evt: DomainEvent) -> None:
            nonlocal fired
            if fired:
                return
            fired = True
            self.off(event, handler)
            handler(evt)

        self._once_wrappers.setdefault(event, {})[handler] = wrapper
        self.on(event, wrapper)

    def emit(self, event: EventType, peer: Optional[Peer] = None) -> DomainEvent:
        """Deliver an event to every handler currently registered for it."""
        domain_event = DomainEvent(type=EventType(event), peer=peer)

        # Iterate over a copy: handlers may register or remove handlers
        for handler in list(self._handlers.get(domain_event.type, ())):
            try:
                handler(domain_event)
            except Exception:
                logger.exception(f"Error in event handler for {domain_event.type.value}")

        return domain_event

    def listener_count(self, event: EventType) -> int:
        return len(self._handlers.get(EventType(event), ()))

    def remove_all_listeners(self, event: Optional[EventType] = None) -> None:
        if event is None:
            self._handlers.clear()
            self._once_wrappers.clear()
        else:
            self._handlers.pop(EventType(event), None)
            self._once_wrappers.pop(EventType(event), None)
