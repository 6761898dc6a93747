"""Application services package.

Contains the connection registry, capability prober, invocation service
and connection event channel.
"""

from .capability_prober import McpCapabilityProber, ProbeResult
from .connection_events import ConnectionEventBus, EventSubscriber
from .connection_registry import (
    ConnectionSnapshot,
    ConnectionTestResult,
    McpConnection,
    McpConnectionRegistry,
    McpConnectionRegistryHostedService,
)
from .invocation_service import McpInvocationService, NotConnectedError

__all__ = [
    # Events
    "ConnectionEventBus",
    "EventSubscriber",
    # Probing
    "McpCapabilityProber",
    "ProbeResult",
    # Registry
    "McpConnectionRegistry",
    "McpConnectionRegistryHostedService",
    "McpConnection",
    "ConnectionSnapshot",
    "ConnectionTestResult",
    # Invocation
    "McpInvocationService",
    "NotConnectedError",
]
