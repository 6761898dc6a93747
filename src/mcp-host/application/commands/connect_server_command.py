"""Connect server command with handler."""

from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Command, CommandHandler
from neuroglia.observability.tracing import add_span_attributes

from application.services import McpConnectionRegistry
from domain.models import McpConfigurationError, ServerDescriptor
from infrastructure.mcp import McpTransportError


@dataclass
class ConnectServerCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to connect (or reconnect) an MCP server.

    Any existing connection with the same identifier is closed first.
    """

    server_id: str
    """Identifier of the server; overrides any id inside server_config."""

    server_config: dict[str, Any] = field(default_factory=dict)
    """Descriptor fields: name, transport, command, args, env, url, headers, description."""


class ConnectServerCommandHandler(CommandHandler[ConnectServerCommand, OperationResult[dict[str, Any]]]):
    """Handler connecting a server through the connection registry."""

    def __init__(self, registry: McpConnectionRegistry):
        super().__init__()
        self.registry = registry

    async def handle_async(self, request: ConnectServerCommand) -> OperationResult[dict[str, Any]]:
        command = request
        add_span_attributes({"mcp.server_id": command.server_id})

        try:
            descriptor = ServerDescriptor.from_dict({**command.server_config, "id": command.server_id})
            snapshot = await self.registry.connect(descriptor)
        except McpConfigurationError as e:
            return self.bad_request(str(e))
        except McpTransportError as e:
            return self.bad_request(str(e))

        return self.ok(
            {
                "success": True,
                "message": f"Successfully connected to {descriptor.name}",
                "server": snapshot.to_dict(),
            }
        )
