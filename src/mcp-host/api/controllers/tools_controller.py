"""Tools API controller for calling tools on connected servers."""

from typing import Any

from classy_fastapi.decorators import post
from fastapi import HTTPException, status
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, Field

from application.commands import CallToolCommand

# ============================================================================
# REQUEST MODELS
# ============================================================================


class CallToolRequest(BaseModel):
    """Request to call a tool on a connected server."""

    server_id: str | None = Field(default=None, alias="serverId", description="Identifier of the connected server")
    tool_name: str | None = Field(default=None, alias="toolName", description="Name of the tool")
    args: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")
    timeout: float | None = Field(default=None, gt=0, description="Optional timeout in seconds")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "serverId": "calculator",
                "toolName": "add",
                "args": {"a": 1, "b": 2},
            }
        }


class ToolsController(ControllerBase):
    """Controller for tool invocation."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @post("/")
    async def call_tool(self, request: CallToolRequest):
        """Call a tool.

        Answers 404 when the server is not connected and 400 when the call fails.
        """
        if not request.server_id or not request.tool_name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: serverId and toolName")

        command = CallToolCommand(
            server_id=request.server_id,
            tool_name=request.tool_name,
            arguments=request.args,
            timeout=request.timeout,
        )
        result = await self.mediator.execute_async(command)
        return self.process(result)
