"""MCP Transport Factory.

Creates transports for server descriptors and establishes initialized
protocol sessions over them, including the fallback from streamable HTTP
to the legacy SSE transport.
"""

import logging

import httpx

from domain.enums import McpTransportType, McpTransportVariant
from domain.models import McpConfigurationError, ServerDescriptor

from .client import DEFAULT_CLIENT_NAME, DEFAULT_CLIENT_VERSION, McpClient
from .env_resolver import McpEnvironmentResolver
from .sse_transport import SseTransport
from .stdio_transport import StdioTransport
from .streamable_http_transport import StreamableHttpTransport
from .transport import IMcpTransport, McpTransportRejectedError

logger = logging.getLogger(__name__)


class TransportFactory:
    """Factory for MCP transports and initialized client sessions.

    Usage:
        factory = TransportFactory(env_resolver)
        client = await factory.establish(descriptor)
        try:
            tools = await client.list_tools()
        finally:
            await client.close()
    """

    def __init__(
        self,
        env_resolver: McpEnvironmentResolver | None = None,
        request_timeout: float = 30.0,
        sse_read_timeout: float = 300.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the transport factory.

        Args:
            env_resolver: Resolver merging configured secrets into descriptors.
                         If None, descriptors are used as-is.
            request_timeout: Timeout for individual HTTP requests, in seconds.
            sse_read_timeout: Read timeout on SSE streams, in seconds.
            http_transport: Optional httpx transport shared by HTTP variants (tests).
        """
        self._env_resolver = env_resolver
        self._request_timeout = request_timeout
        self._sse_read_timeout = sse_read_timeout
        self._http_transport = http_transport

    def resolve(self, descriptor: ServerDescriptor) -> ServerDescriptor:
        """Apply configured secrets to a descriptor."""
        if self._env_resolver is None:
            return descriptor
        return self._env_resolver.apply(descriptor)

    def create_transport(
        self,
        descriptor: ServerDescriptor,
        variant: McpTransportVariant | None = None,
    ) -> IMcpTransport:
        """Create an unopened transport for a descriptor.

        Args:
            descriptor: Validated server descriptor
            variant: HTTP variant to use; defaults to streamable HTTP for http descriptors

        Raises:
            McpConfigurationError: If the transport type is not supported
        """
        if descriptor.transport == McpTransportType.STDIO:
            if not descriptor.command:
                raise McpConfigurationError("Command is required for stdio transport")
            return StdioTransport(
                command=descriptor.command,
                args=descriptor.args,
                environment=descriptor.env,
            )

        if descriptor.transport == McpTransportType.HTTP:
            if not descriptor.url:
                raise McpConfigurationError("URL is required for HTTP transport")
            transport_class = SseTransport if variant == McpTransportVariant.SSE else StreamableHttpTransport
            return transport_class(
                url=descriptor.url,
                headers=descriptor.headers,
                timeout=self._request_timeout,
                sse_read_timeout=self._sse_read_timeout,
                http_transport=self._http_transport,
            )

        raise McpConfigurationError(f"Unsupported transport type: {descriptor.transport}")

    async def establish(
        self,
        descriptor: ServerDescriptor,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
        timeout: float | None = None,
    ) -> McpClient:
        """Open a transport and complete the MCP handshake.

        For http descriptors, streamable HTTP is tried first; if the endpoint
        rejects it, the session is retried once over SSE. Network failures do
        not trigger the fallback. Whatever was opened is closed when this
        method fails or is cancelled.

        Returns:
            An initialized McpClient owning its transport

        Raises:
            McpConfigurationError: If the descriptor is invalid
            McpTransportError: If the transport or the handshake fails
        """
        descriptor = self.resolve(descriptor)
        descriptor.validate()

        if descriptor.transport != McpTransportType.HTTP:
            return await self._open_session(self.create_transport(descriptor), client_name, client_version, timeout)

        try:
            return await self._open_session(
                self.create_transport(descriptor, McpTransportVariant.STREAMABLE_HTTP),
                client_name,
                client_version,
                timeout,
            )
        except McpTransportRejectedError as e:
            logger.info(f"Server '{descriptor.id}' rejected streamable HTTP ({e.status_code}), falling back to SSE")

        return await self._open_session(
            self.create_transport(descriptor, McpTransportVariant.SSE),
            client_name,
            client_version,
            timeout,
        )

    async def _open_session(
        self,
        transport: IMcpTransport,
        client_name: str,
        client_version: str,
        timeout: float | None,
    ) -> McpClient:
        client = McpClient(transport, client_name=client_name, client_version=client_version)
        try:
            await transport.open()
            await client.initialize(timeout=timeout)
        except BaseException:
            await client.close()
            raise
        logger.debug(f"Established MCP session over {transport!r}")
        return client
