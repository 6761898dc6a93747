"""Prompts API controller for retrieving prompts from connected servers."""

from classy_fastapi.decorators import post
from fastapi import HTTPException, status
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, Field

from application.queries import GetPromptQuery

# ============================================================================
# REQUEST MODELS
# ============================================================================


class GetPromptRequest(BaseModel):
    """Request to render a prompt template."""

    server_id: str | None = Field(default=None, alias="serverId", description="Identifier of the connected server")
    prompt_name: str | None = Field(default=None, alias="promptName", description="Name of the prompt")
    args: dict[str, str] = Field(default_factory=dict, description="Template arguments")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "serverId": "docs",
                "promptName": "summarize",
                "args": {"topic": "transports"},
            }
        }


class PromptsController(ControllerBase):
    """Controller for prompt retrieval."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @post("/")
    async def get_prompt(self, request: GetPromptRequest):
        """Retrieve a rendered prompt."""
        if not request.server_id or not request.prompt_name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: serverId and promptName")

        query = GetPromptQuery(server_id=request.server_id, prompt_name=request.prompt_name, arguments=request.args)
        result = await self.mediator.execute_async(query)
        return self.process(result)
