"""Test server connection command with handler."""

from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Command, CommandHandler

from application.services import McpConnectionRegistry
from domain.models import McpConfigurationError, ServerDescriptor


@dataclass
class TestServerConnectionCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to check that a server can be reached, without registering it.

    The check connects with a throwaway client, lists tools and disconnects.
    """

    __test__ = False  # Not a pytest test class

    server_id: str
    """Identifier used for logging; the connection is never registered."""

    server_config: dict[str, Any] = field(default_factory=dict)
    """Descriptor fields, as for ConnectServerCommand."""


class TestServerConnectionCommandHandler(CommandHandler[TestServerConnectionCommand, OperationResult[dict[str, Any]]]):
    """Handler running a throwaway connection test."""

    __test__ = False  # Not a pytest test class

    def __init__(self, registry: McpConnectionRegistry):
        super().__init__()
        self.registry = registry

    async def handle_async(self, request: TestServerConnectionCommand) -> OperationResult[dict[str, Any]]:
        command = request
        try:
            descriptor = ServerDescriptor.from_dict({**command.server_config, "id": command.server_id})
        except McpConfigurationError as e:
            return self.bad_request(str(e))

        result = await self.registry.check_connection(descriptor)
        if not result.success:
            return self.bad_request(result.error or "Connection test failed")

        return self.ok(
            {
                "success": True,
                "message": "Connection test successful",
                "validationResults": result.to_dict(),
            }
        )
