"""Call tool command with handler."""

from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Command, CommandHandler
from neuroglia.observability.tracing import add_span_attributes

from application.services import McpConnection, McpInvocationService, NotConnectedError
from infrastructure.mcp import McpInvocationError


@dataclass
class CallToolCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to call a tool on a connected MCP server.

    A tool reporting ``isError`` is still a successful call; the flag is
    returned with the result.
    """

    server_id: str
    """Identifier of the connected server."""

    tool_name: str
    """Name of the tool on that server."""

    arguments: dict[str, Any] = field(default_factory=dict)
    """Tool arguments, forwarded untouched."""

    timeout: float | None = None
    """Optional per-call timeout in seconds."""


class CallToolCommandHandler(CommandHandler[CallToolCommand, OperationResult[dict[str, Any]]]):
    def __init__(self, invocation_service: McpInvocationService):
        super().__init__()
        self.invocation_service = invocation_service

    async def handle_async(self, request: CallToolCommand) -> OperationResult[dict[str, Any]]:
        command = request
        add_span_attributes({"mcp.server_id": command.server_id, "mcp.tool_name": command.tool_name})

        try:
            result = await self.invocation_service.call_tool(
                command.server_id,
                command.tool_name,
                command.arguments,
                timeout=command.timeout,
            )
        except NotConnectedError:
            return self.not_found(McpConnection, command.server_id)
        except McpInvocationError as e:
            return self.bad_request(str(e))

        return self.ok({"success": True, "result": result.to_dict()})
