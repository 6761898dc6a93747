"""Pytest configuration and shared fixtures for all tests.

This module provides:
- Test configuration and markers
- Scripted MCP peers and fake transports
- Registry, event bus and invocation service fixtures
"""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from _pytest.config import Config

from application.services import ConnectionEventBus, McpConnectionRegistry, McpInvocationService
from domain.events import ConnectionEvent
from tests.fixtures.fake_peer import FakeTransportFactory, ScriptedMcpServer

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config: Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (spawn processes or run HTTP fakes)")
    config.addinivalue_line("markers", "slow: Slow tests (may take several seconds)")
    config.addinivalue_line("markers", "asyncio: Async tests")
    config.addinivalue_line("markers", "command: Command handler tests")
    config.addinivalue_line("markers", "query: Query handler tests")


# ============================================================================
# MCP PEER FIXTURES
# ============================================================================


@pytest.fixture
def scripted_server() -> ScriptedMcpServer:
    """Provide a scripted server supporting tools, resources and prompts."""
    return ScriptedMcpServer()


@pytest.fixture
def transport_factory(scripted_server: ScriptedMcpServer) -> FakeTransportFactory:
    """Provide a transport factory whose transports talk to scripted servers.

    The ``calculator`` server id is bound to the ``scripted_server`` fixture;
    any other id gets a fresh default server.
    """
    return FakeTransportFactory(servers={"calculator": scripted_server})


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> ConnectionEventBus:
    """Provide an event bus."""
    return ConnectionEventBus()


@pytest.fixture
def published_events(event_bus: ConnectionEventBus) -> list[ConnectionEvent]:
    """Collect every event published on the event bus."""
    events: list[ConnectionEvent] = []
    event_bus.subscribe(events.append)
    return events


@pytest.fixture
def registry(transport_factory: FakeTransportFactory, event_bus: ConnectionEventBus) -> McpConnectionRegistry:
    """Provide a registry over fake transports with a short connect timeout."""
    return McpConnectionRegistry(transport_factory=transport_factory, event_bus=event_bus, connect_timeout=1.0)


@pytest.fixture
def invocation_service(registry: McpConnectionRegistry, event_bus: ConnectionEventBus) -> McpInvocationService:
    """Provide an invocation service over the registry."""
    return McpInvocationService(registry, event_bus=event_bus)


# ============================================================================
# MOCK FIXTURES
# ============================================================================


@pytest.fixture
def mock_registry() -> MagicMock:
    """Provide a mocked connection registry."""
    return MagicMock(spec=McpConnectionRegistry)


@pytest.fixture
def mock_invocation_service() -> MagicMock:
    """Provide a mocked invocation service."""
    return MagicMock(spec=McpInvocationService)


@pytest.fixture
def event_types(published_events: list[ConnectionEvent]) -> Callable[[], list[str]]:
    """Return a callable listing the types of the events published so far."""
    return lambda: [event.type for event in published_events]
