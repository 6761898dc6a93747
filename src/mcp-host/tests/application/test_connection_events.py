"""Tests for ConnectionEventBus."""

import pytest

from application.services import ConnectionEventBus
from domain.events import ConnectionClosedEvent, ConnectionEvent


class TestConnectionEventBus:
    """Test event fan-out."""

    def test_subscribers_receive_events_in_order(self) -> None:
        """Test every subscriber receives every event."""
        bus = ConnectionEventBus()
        first: list[ConnectionEvent] = []
        second: list[ConnectionEvent] = []
        bus.subscribe(first.append)
        bus.subscribe(second.append)

        bus.publish(ConnectionClosedEvent(server_id="a"))
        bus.publish(ConnectionClosedEvent(server_id="b"))

        assert [event.server_id for event in first] == ["a", "b"]
        assert [event.server_id for event in second] == ["a", "b"]

    def test_unsubscribe(self) -> None:
        """Test the returned callable removes the subscriber."""
        bus = ConnectionEventBus()
        received: list[ConnectionEvent] = []
        unsubscribe = bus.subscribe(received.append)

        unsubscribe()
        bus.publish(ConnectionClosedEvent(server_id="a"))

        assert received == []
        assert bus.subscriber_count == 0
        assert bus.unsubscribe(received.append) is False

    def test_failing_subscriber_is_isolated(self) -> None:
        """Test a raising subscriber does not stop delivery."""
        bus = ConnectionEventBus()
        received: list[ConnectionEvent] = []

        def broken(event: ConnectionEvent) -> None:
            raise RuntimeError("subscriber bug")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        bus.publish(ConnectionClosedEvent(server_id="a"))

        assert len(received) == 1

    def test_subscriber_limit(self) -> None:
        """Test subscriptions beyond the limit are refused."""
        bus = ConnectionEventBus(max_subscribers=2)
        bus.subscribe(lambda event: None)
        bus.subscribe(lambda event: None)

        with pytest.raises(ValueError, match="Subscriber limit reached"):
            bus.subscribe(lambda event: None)

    def test_invalid_limit(self) -> None:
        """Test the limit must be positive."""
        with pytest.raises(ValueError):
            ConnectionEventBus(max_subscribers=0)
