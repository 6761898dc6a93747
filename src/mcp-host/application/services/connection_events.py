"""Connection event fan-out.

A bounded, synchronous publish/subscribe channel for connection lifecycle
and invocation events. Subscribers are called in subscription order on
the publishing task; a failing subscriber is logged and skipped so it can
neither break delivery to the others nor the operation that published.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from domain.events import ConnectionEvent

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

logger = logging.getLogger(__name__)

EventSubscriber = Callable[[ConnectionEvent], None]

DEFAULT_MAX_SUBSCRIBERS = 32


class ConnectionEventBus:
    """In-process fan-out of connection events.

    Usage:
        bus = ConnectionEventBus()
        unsubscribe = bus.subscribe(lambda event: print(event.type))
        bus.publish(ConnectionClosedEvent(server_id="github"))
        unsubscribe()
    """

    def __init__(self, max_subscribers: int = DEFAULT_MAX_SUBSCRIBERS):
        if max_subscribers < 1:
            raise ValueError("max_subscribers must be at least 1")
        self._max_subscribers = max_subscribers
        self._subscribers: list[EventSubscriber] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, subscriber: EventSubscriber) -> Callable[[], None]:
        """Register a subscriber.

        Returns:
            A callable that removes the subscriber

        Raises:
            ValueError: If the subscriber limit is reached
        """
        if len(self._subscribers) >= self._max_subscribers:
            raise ValueError(f"Subscriber limit reached ({self._max_subscribers})")
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            self.unsubscribe(subscriber)

        return unsubscribe

    def unsubscribe(self, subscriber: EventSubscriber) -> bool:
        """Remove a subscriber. Returns False if it was not subscribed."""
        try:
            self._subscribers.remove(subscriber)
            return True
        except ValueError:
            return False

    def publish(self, event: ConnectionEvent) -> None:
        """Deliver an event to every subscriber."""
        logger.debug(f"Publishing {event.type} for server '{event.server_id}'")
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Connection event subscriber failed on {event.type}: {e}")

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> "ConnectionEventBus":
        """Register a ConnectionEventBus singleton sized from the application settings."""
        from application.settings import app_settings

        logger.info("🔧 Configuring ConnectionEventBus...")
        event_bus = ConnectionEventBus(max_subscribers=app_settings.mcp_max_event_subscribers)
        builder.services.add_singleton(ConnectionEventBus, singleton=event_bus)
        logger.info("✅ ConnectionEventBus configured")
        return event_bus
