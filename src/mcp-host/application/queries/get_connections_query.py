"""Get connections query with handler.

Reports the recorded state of every server the registry has seen, with
capabilities and catalogs for the live ones.
"""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import McpConnectionRegistry


@dataclass
class GetConnectionsQuery(Query[OperationResult[list[dict[str, Any]]]]):
    """Query to list server connection states."""

    server_id: str | None = None
    """Restrict the result to a single server."""

    include_catalogs: bool = True
    """Whether to include tools, resources and prompts of live connections."""


class GetConnectionsQueryHandler(QueryHandler[GetConnectionsQuery, OperationResult[list[dict[str, Any]]]]):
    """Handler reading the connection registry."""

    def __init__(self, registry: McpConnectionRegistry):
        super().__init__()
        self.registry = registry

    async def handle_async(self, request: GetConnectionsQuery) -> OperationResult[list[dict[str, Any]]]:
        query = request
        states = self.registry.get_states()
        if query.server_id is not None:
            states = {query.server_id: self.registry.get_state(query.server_id)}

        servers: list[dict[str, Any]] = []
        for server_id, state in states.items():
            entry: dict[str, Any] = {"id": server_id, **state.to_dict()}
            connection = self.registry.get_connection(server_id)
            if connection is not None:
                snapshot = connection.snapshot().to_dict()
                entry["capabilities"] = snapshot["capabilities"]
                entry["serverInfo"] = snapshot["serverInfo"]
                if query.include_catalogs:
                    entry["tools"] = snapshot["tools"]
                    entry["resources"] = snapshot["resources"]
                    entry["prompts"] = snapshot["prompts"]
            servers.append(entry)

        return self.ok(servers)
