"""Events published by the connection registry and the invocation service.

Events are immutable and carry only what subscribers need to react
(identifiers, status, names); they never carry tool arguments or results.
"""

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from domain.enums import ConnectionStatus
from domain.models import ServerCapabilities


def _camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


@dataclass(frozen=True, kw_only=True)
class ConnectionEvent:
    """Base class for all connection events."""

    type: ClassVar[str] = "connection_event"

    server_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        data: dict[str, Any] = {"type": self.type}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, ServerCapabilities):
                value = value.to_dict()
            data[_camel(f.name)] = value
        return data


@dataclass(frozen=True, kw_only=True)
class ConnectionStatusChangedEvent(ConnectionEvent):
    """The registry recorded a new status for a server."""

    type: ClassVar[str] = "connection_status_changed"

    status: ConnectionStatus
    error_message: str | None = None


@dataclass(frozen=True, kw_only=True)
class ConnectionEstablishedEvent(ConnectionEvent):
    """A server finished connecting and probing."""

    type: ClassVar[str] = "connection_established"

    server_name: str
    capabilities: ServerCapabilities


@dataclass(frozen=True, kw_only=True)
class ConnectionClosedEvent(ConnectionEvent):
    """A server connection was removed from the registry."""

    type: ClassVar[str] = "connection_closed"


@dataclass(frozen=True, kw_only=True)
class ToolCalledEvent(ConnectionEvent):
    type: ClassVar[str] = "tool_called"

    tool_name: str
    is_error: bool = False


@dataclass(frozen=True, kw_only=True)
class ResourceReadEvent(ConnectionEvent):
    type: ClassVar[str] = "resource_read"

    uri: str


@dataclass(frozen=True, kw_only=True)
class PromptRetrievedEvent(ConnectionEvent):
    type: ClassVar[str] = "prompt_retrieved"

    prompt_name: str
