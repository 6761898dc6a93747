"""Disconnect server command with handler."""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Command, CommandHandler

from application.services import McpConnectionRegistry


@dataclass
class DisconnectServerCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to disconnect an MCP server. Disconnecting an unknown server succeeds."""

    server_id: str
    """Identifier of the server to disconnect."""


class DisconnectServerCommandHandler(CommandHandler[DisconnectServerCommand, OperationResult[dict[str, Any]]]):
    def __init__(self, registry: McpConnectionRegistry):
        super().__init__()
        self.registry = registry

    async def handle_async(self, request: DisconnectServerCommand) -> OperationResult[dict[str, Any]]:
        await self.registry.disconnect(request.server_id)
        return self.ok(
            {
                "success": True,
                "message": f"Successfully disconnected from server {request.server_id}",
            }
        )
