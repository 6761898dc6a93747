"""ServerDescriptor value object.

Describes how to reach one MCP server. Descriptors are supplied by the
caller (typically deserialized from a JSON request body) and are never
persisted by the host.
"""

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from domain.enums import McpTransportType


class McpConfigurationError(ValueError):
    """Raised when a server descriptor is malformed or incomplete."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class ServerDescriptor:
    """Connection descriptor for a single MCP server.

    The identifier is caller-assigned and unique within a registry. Only the
    fields matching the transport are consulted: command/args/env for stdio,
    url/headers for http.
    """

    id: str  # Caller-assigned, immutable identifier
    name: str  # Display name
    transport: McpTransportType = McpTransportType.STDIO
    command: str | None = None  # Executable for stdio servers
    args: list[str] = field(default_factory=list)  # Ordered arguments for the executable
    env: dict[str, str] = field(default_factory=dict)  # Environment overrides for the subprocess
    url: str | None = None  # Endpoint for http servers
    headers: dict[str, str] = field(default_factory=dict)  # Static headers for every HTTP request
    description: str | None = None

    def validate(self) -> None:
        """Check that the descriptor carries what its transport needs.

        Raises:
            McpConfigurationError: If the transport is unsupported or its
                required fields are missing
        """
        if not self.id:
            raise McpConfigurationError("Server id is required")

        if self.transport == McpTransportType.STDIO:
            if not self.command or not self.command.strip():
                raise McpConfigurationError("Command is required for stdio transport")
        elif self.transport == McpTransportType.HTTP:
            if not self.url or not self.url.strip():
                raise McpConfigurationError("URL is required for HTTP transport")
            parsed = urlparse(self.url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise McpConfigurationError(f"Invalid URL for HTTP transport: {self.url}")
        else:
            raise McpConfigurationError(f"Unsupported transport type: {self.transport}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape used at the API boundary."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "transport": self.transport.value,
        }
        if self.transport == McpTransportType.STDIO:
            data["command"] = self.command
            data["args"] = list(self.args)
            data["env"] = dict(self.env)
        else:
            data["url"] = self.url
            data["headers"] = dict(self.headers)
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], server_id: str | None = None) -> "ServerDescriptor":
        """Deserialize from a request payload.

        Args:
            data: Descriptor fields; ``transport`` defaults to ``stdio``
            server_id: Identifier to use when ``data`` does not carry one

        Raises:
            McpConfigurationError: If the payload is not an object or names an
                unknown transport
        """
        if not isinstance(data, dict):
            raise McpConfigurationError("Server configuration must be an object")

        raw_transport = data.get("transport") or McpTransportType.STDIO.value
        try:
            transport = McpTransportType(raw_transport)
        except ValueError as e:
            raise McpConfigurationError(f"Unsupported transport type: {raw_transport}", e) from e

        args = data.get("args") or []
        if isinstance(args, str):
            args = args.split()

        return cls(
            id=str(data.get("id") or server_id or ""),
            name=data.get("name") or str(data.get("id") or server_id or ""),
            transport=transport,
            command=data.get("command"),
            args=[str(arg) for arg in args],
            env={str(k): str(v) for k, v in (data.get("env") or {}).items()},
            url=data.get("url"),
            headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
            description=data.get("description"),
        )

    def with_overrides(self, env: dict[str, str], headers: dict[str, str]) -> "ServerDescriptor":
        """Return a copy whose env/headers are ``env``/``headers`` merged under this descriptor's own values."""
        return ServerDescriptor(
            id=self.id,
            name=self.name,
            transport=self.transport,
            command=self.command,
            args=list(self.args),
            env={**env, **self.env},
            url=self.url,
            headers={**headers, **self.headers},
            description=self.description,
        )
