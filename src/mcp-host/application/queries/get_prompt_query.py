"""Get prompt query with handler."""

from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import McpConnection, McpInvocationService, NotConnectedError
from infrastructure.mcp import McpInvocationError


@dataclass
class GetPromptQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to retrieve a rendered prompt from a connected MCP server."""

    server_id: str
    """Identifier of the connected server."""

    prompt_name: str
    """Name of the prompt template."""

    arguments: dict[str, str] = field(default_factory=dict)
    """Template arguments."""

    timeout: float | None = None
    """Optional per-call timeout in seconds."""


class GetPromptQueryHandler(QueryHandler[GetPromptQuery, OperationResult[dict[str, Any]]]):
    def __init__(self, invocation_service: McpInvocationService):
        super().__init__()
        self.invocation_service = invocation_service

    async def handle_async(self, request: GetPromptQuery) -> OperationResult[dict[str, Any]]:
        query = request
        try:
            result = await self.invocation_service.get_prompt(
                query.server_id,
                query.prompt_name,
                query.arguments,
                timeout=query.timeout,
            )
        except NotConnectedError:
            return self.not_found(McpConnection, query.server_id)
        except McpInvocationError as e:
            return self.bad_request(str(e))

        return self.ok({"success": True, "result": result.to_dict()})
