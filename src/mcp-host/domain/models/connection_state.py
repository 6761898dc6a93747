"""Connection state value objects."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from domain.enums import ConnectionStatus


@dataclass(frozen=True)
class ServerCapabilities:
    """Capabilities a server was observed to support.

    Flags are set empirically by probing each list method, not from what the
    server declares during the handshake.
    """

    resources: bool = False
    tools: bool = False
    prompts: bool = False

    def to_dict(self) -> dict[str, bool]:
        """Serialize to dictionary."""
        return {
            "resources": self.resources,
            "tools": self.tools,
            "prompts": self.prompts,
        }


@dataclass(frozen=True)
class ConnectionState:
    """Status of a server as tracked by the connection registry."""

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    last_connected: datetime | None = None  # UTC time of the last successful connect
    error_message: str | None = None  # Message of the last failure, if status is ERROR

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "status": self.status.value,
            "lastConnected": self.last_connected.isoformat() if self.last_connected else None,
            "errorMessage": self.error_message,
        }
