"""Servers API controller.

Provides endpoints for:
- Connecting, disconnecting and testing MCP servers (action envelope)
- Listing connection states and catalogs
"""

from typing import Any

from classy_fastapi.decorators import get, post
from fastapi import HTTPException, Query, status
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, Field

from application.commands import ConnectServerCommand, DisconnectServerCommand, TestServerConnectionCommand
from application.queries import GetConnectionsQuery

# ============================================================================
# REQUEST MODELS
# ============================================================================


class ServerActionRequest(BaseModel):
    """Action envelope for server lifecycle operations."""

    action: str | None = Field(default=None, description="One of: connect, disconnect, test")
    server_id: str | None = Field(default=None, alias="serverId", description="Identifier of the server")
    server_config: dict[str, Any] | None = Field(
        default=None,
        alias="serverConfig",
        description="Server descriptor (required for connect and test)",
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "action": "connect",
                "serverId": "filesystem",
                "serverConfig": {
                    "name": "Filesystem",
                    "transport": "stdio",
                    "command": "npx",
                    "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
                },
            }
        }


class ServersController(ControllerBase):
    """Controller for MCP server connection lifecycle."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @post("/")
    async def server_action(self, request: ServerActionRequest):
        """Connect, disconnect or test a server.

        - connect: (re)connects the server and returns its capabilities and catalogs
        - disconnect: closes the connection; succeeds when not connected
        - test: connects with a throwaway client without registering it
        """
        if not request.action or not request.server_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: action and serverId")

        if request.action == "disconnect":
            result = await self.mediator.execute_async(DisconnectServerCommand(server_id=request.server_id))
            return self.process(result)

        if request.action not in ("connect", "test"):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid action: {request.action}")
        if request.server_config is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Server configuration is required")

        if request.action == "connect":
            command = ConnectServerCommand(server_id=request.server_id, server_config=request.server_config)
        else:
            command = TestServerConnectionCommand(server_id=request.server_id, server_config=request.server_config)
        result = await self.mediator.execute_async(command)
        return self.process(result)

    @get("/")
    async def list_servers(
        self,
        include_catalogs: bool = Query(True, alias="includeCatalogs", description="Include tools, resources and prompts"),
    ):
        """List the state of every known server."""
        result = await self.mediator.execute_async(GetConnectionsQuery(include_catalogs=include_catalogs))
        return self.process(result)

    @get("/{server_id}")
    async def get_server(self, server_id: str):
        """Get the state of one server."""
        result = await self.mediator.execute_async(GetConnectionsQuery(server_id=server_id))
        return self.process(result)
