"""Read resource query with handler."""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import McpConnection, McpInvocationService, NotConnectedError
from infrastructure.mcp import McpInvocationError


@dataclass
class ReadResourceQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to read a resource from a connected MCP server."""

    server_id: str
    """Identifier of the connected server."""

    uri: str
    """URI of the resource, as listed by the server."""

    timeout: float | None = None
    """Optional per-call timeout in seconds."""


class ReadResourceQueryHandler(QueryHandler[ReadResourceQuery, OperationResult[dict[str, Any]]]):
    """Handler reading a resource through the invocation service."""

    def __init__(self, invocation_service: McpInvocationService):
        super().__init__()
        self.invocation_service = invocation_service

    async def handle_async(self, request: ReadResourceQuery) -> OperationResult[dict[str, Any]]:
        query = request
        try:
            result = await self.invocation_service.read_resource(query.server_id, query.uri, timeout=query.timeout)
        except NotConnectedError:
            return self.not_found(McpConnection, query.server_id)
        except McpInvocationError as e:
            return self.bad_request(str(e))

        return self.ok({"success": True, "result": result.to_dict()})
