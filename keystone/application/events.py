"""Publish/subscribe channel for connection lifecycle notifications.

The connection manager publishes named lifecycle events on an EventChannel
and observers (health checks, the application root) subscribe to them. The
publisher never holds references to its observers beyond the channel, so
connection health stays decoupled from business logic.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

LOGGER = logging.getLogger(__name__)

Handler = Callable[..., Any]


class ConnectionEvent(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTED = "reconnected"
    ERROR = "error"
    CONNECTION_FAILED = "connection_failed"


class EventChannel:
    """Dispatches lifecycle events to subscribed handlers.

    Handlers are plain callables invoked synchronously in subscription order.
    A handler that raises is logged and skipped; the exception never reaches
    the publisher, so a faulty observer cannot take down the connection
    manager.

    Examples:
        >>> channel = EventChannel()
        >>> unsubscribe = channel.subscribe(
        ...     ConnectionEvent.DISCONNECTED, lambda: print("store lost")
        ... )
        >>> channel.publish(ConnectionEvent.DISCONNECTED)
        store lost
        >>> unsubscribe()
    """

    def __init__(self) -> None:
        self._handlers: dict[ConnectionEvent, list[Handler]] = defaultdict(list)

    def subscribe(self, event: ConnectionEvent, handler: Handler) -> Callable[[], None]:
        """Register a handler for an event.

        Returns:
            A callable that removes the subscription. Calling it twice is harmless.
        """
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def publish(self, event: ConnectionEvent, *args: Any) -> None:
        # Copy so handlers may unsubscribe while being dispatched.
        for handler in list(self._handlers[event]):
            try:
                handler(*args)
            except Exception:
                LOGGER.exception(
                    "Lifecycle event handler failed", extra={"event": event.value}
                )

    def subscriber_count(self, event: ConnectionEvent) -> int:
        return len(self._handlers[event])
