"""Resources API controller for reading resources from connected servers."""

from classy_fastapi.decorators import get
from fastapi import HTTPException, Query, status
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase

from application.queries import ReadResourceQuery


class ResourcesController(ControllerBase):
    """Controller for resource reads."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @get("/")
    async def read_resource(
        self,
        server_id: str | None = Query(None, alias="serverId", description="Identifier of the connected server"),
        uri: str | None = Query(None, description="Resource URI"),
    ):
        """Read a resource by URI."""
        if not server_id or not uri:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required parameters: serverId and uri")

        result = await self.mediator.execute_async(ReadResourceQuery(server_id=server_id, uri=uri))
        return self.process(result)
