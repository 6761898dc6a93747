"""Connection lifecycle and invocation events."""

from .connection import (
    ConnectionClosedEvent,
    ConnectionEstablishedEvent,
    ConnectionEvent,
    ConnectionStatusChangedEvent,
    PromptRetrievedEvent,
    ResourceReadEvent,
    ToolCalledEvent,
)

__all__ = [
    "ConnectionEvent",
    # Lifecycle
    "ConnectionStatusChangedEvent",
    "ConnectionEstablishedEvent",
    "ConnectionClosedEvent",
    # Invocations
    "ToolCalledEvent",
    "ResourceReadEvent",
    "PromptRetrievedEvent",
]
