"""
EventBus — string-keyed publish/subscribe channel used by the Graph to
announce mutations.

Delivery is synchronous and in subscription order. `emit()` walks a snapshot
of the subscriber list, so a subscriber may subscribe, unsubscribe or call back
into the Graph while it is being notified.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, NamedTuple

logger = logging.getLogger(__name__)

# Event types emitted by the Graph
NODE_ADD = "node-add"
NODE_REMOVED = "node-removed"
SOCKET_CONNECT = "socket-connect"
SOCKET_DISCONNECT = "socket-disconnect"
PROPERTY_CHANGE = "property-change"

GRAPH_EVENTS = (NODE_ADD, NODE_REMOVED, SOCKET_CONNECT, SOCKET_DISCONNECT, PROPERTY_CHANGE)

Listener = Callable[[Any], None]


class PropertyChange(NamedTuple):
    """Payload of a `property-change` event."""
    node: Any
    property: str
    value: Any


class Subscription:
    def __init__(self, bus: 'EventBus', event_type: str, callback: Listener) -> None:
        self._bus = bus
        self.event_type = event_type
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._bus._remove(self)

    def __repr__(self) -> str:
        return f"Subscription({self.event_type!r}, active={self.active})"


class EventStream:
    """
    A live view of one event type on a bus.

    Creating the stream registers nothing; only `subscribe()` does. Payloads
    emitted before a subscription are never replayed to it.
    """

    def __init__(self, bus: 'EventBus', event_type: str) -> None:
        self._bus = bus
        self.event_type = event_type

    def subscribe(self, callback: Listener) -> Subscription:
        return self._bus._add(self.event_type, callback)

    def __repr__(self) -> str:
        return f"EventStream({self.event_type!r})"


class EventBus:
    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def on(self, event_type: str) -> EventStream:
        """Return the stream of payloads emitted for *event_type*."""
        return EventStream(self, event_type)

    def subscribe(self, event_type: str, callback: Listener) -> Subscription:
        """Shortcut for `bus.on(event_type).subscribe(callback)`."""
        return self._add(event_type, callback)

    def _add(self, event_type: str, callback: Listener) -> Subscription:
        subscription = Subscription(self, event_type, callback)
        self._subscriptions.setdefault(event_type, []).append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.event_type, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)

    def subscriber_count(self, event_type: str) -> int:
        return len(self._subscriptions.get(event_type, []))

    # ------------------------------------------------------------------
    # Emit
    # ------------------------------------------------------------------

    def emit(self, event_type: str, payload: Any) -> None:
        """Deliver *payload* to every current subscriber of *event_type*."""
        for subscription in list(self._subscriptions.get(event_type, [])):
            # unsubscribed by an earlier subscriber during this emit
            if not subscription.active:
                continue
            try:
                subscription.callback(payload)
            except Exception:
                # a failing subscriber must not break the mutation that emitted
                logger.exception(f"Subscriber for '{event_type}' raised")
