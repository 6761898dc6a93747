"""MCP connection registry.

Maps server identifiers to live, initialized and probed connections and
drives the connect / disconnect / test state machine:

    absent -> connecting -> connected | absent (state recorded as error)
    connected -> disconnecting -> absent

Mutations for one identifier are serialized; different identifiers are
independent. A connection is inserted only after the transport is open,
the handshake completed and the capabilities were probed.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from neuroglia.hosting.abstractions import HostedService
from opentelemetry import trace

from application.services.capability_prober import McpCapabilityProber, ProbeResult
from application.services.connection_events import ConnectionEventBus
from domain.enums import ConnectionStatus
from domain.events import ConnectionClosedEvent, ConnectionEstablishedEvent, ConnectionEvent, ConnectionStatusChangedEvent
from domain.models import ConnectionState, McpConfigurationError, ServerCapabilities, ServerDescriptor
from infrastructure.mcp import (
    McpClient,
    McpConnectionError,
    McpEnvironmentResolver,
    McpPromptDefinition,
    McpResourceDefinition,
    McpServerInfo,
    McpTimeoutError,
    McpToolDefinition,
    McpTransportError,
    TransportFactory,
)
from infrastructure.mcp.client import DEFAULT_CLIENT_NAME, DEFAULT_CLIENT_VERSION
from observability import connection_time, connections_closed, connections_failed, connections_opened

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds, covers open + handshake + probing


@dataclass(frozen=True)
class ConnectionSnapshot:
    """Point-in-time view of a connection returned to callers."""

    server_id: str
    status: ConnectionStatus
    capabilities: ServerCapabilities
    tools: list[McpToolDefinition] = field(default_factory=list)
    resources: list[McpResourceDefinition] = field(default_factory=list)
    prompts: list[McpPromptDefinition] = field(default_factory=list)
    server_info: McpServerInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shape returned by the API."""
        return {
            "id": self.server_id,
            "status": self.status.value,
            "capabilities": self.capabilities.to_dict(),
            "resources": [resource.to_dict() for resource in self.resources],
            "tools": [tool.to_dict() for tool in self.tools],
            "prompts": [prompt.to_dict() for prompt in self.prompts],
            "serverInfo": self.server_info.to_dict() if self.server_info else None,
        }


@dataclass
class McpConnection:
    """A live connection owned by the registry.

    The client owns the transport; closing the client closes both.
    """

    descriptor: ServerDescriptor
    client: McpClient
    capabilities: ServerCapabilities
    tools: list[McpToolDefinition] = field(default_factory=list)
    resources: list[McpResourceDefinition] = field(default_factory=list)
    prompts: list[McpPromptDefinition] = field(default_factory=list)
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def server_id(self) -> str:
        return self.descriptor.id

    @property
    def server_info(self) -> McpServerInfo | None:
        return self.client.server_info

    @property
    def is_connected(self) -> bool:
        return self.client.is_connected

    def snapshot(self) -> ConnectionSnapshot:
        return ConnectionSnapshot(
            server_id=self.server_id,
            status=ConnectionStatus.CONNECTED if self.is_connected else ConnectionStatus.DISCONNECTED,
            capabilities=self.capabilities,
            tools=list(self.tools),
            resources=list(self.resources),
            prompts=list(self.prompts),
            server_info=self.server_info,
        )


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a throwaway connection test."""

    success: bool
    error: str | None = None
    server_info: McpServerInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "serverInfo": self.server_info.to_dict() if self.server_info else None,
        }


class McpConnectionRegistry:
    """Registry of live MCP server connections.

    Usage:
        registry = McpConnectionRegistry(TransportFactory())
        snapshot = await registry.connect(descriptor)
        connection = registry.get_connection(descriptor.id)
        await registry.disconnect(descriptor.id)
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        prober: McpCapabilityProber | None = None,
        event_bus: ConnectionEventBus | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ):
        """Initialize the registry.

        Args:
            transport_factory: Factory establishing client sessions for descriptors
            prober: Capability prober; a default one is created when omitted
            event_bus: Optional channel receiving lifecycle events
            connect_timeout: Bound on connect and test, in seconds
            client_name: Client name sent in the handshake
            client_version: Client version sent in the handshake
        """
        self._transport_factory = transport_factory
        self._prober = prober or McpCapabilityProber()
        self._event_bus = event_bus
        self._connect_timeout = connect_timeout
        self._client_name = client_name
        self._client_version = client_version

        self._connections: dict[str, McpConnection] = {}
        self._states: dict[str, ConnectionState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout

    @asynccontextmanager
    async def _serialized(self, server_id: str) -> AsyncIterator[None]:
        """Hold the identifier's lock; the lock is dropped once nobody holds or awaits it."""
        lock = self._locks.setdefault(server_id, asyncio.Lock())
        self._lock_users[server_id] = self._lock_users.get(server_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[server_id] -= 1
            if self._lock_users[server_id] == 0:
                del self._lock_users[server_id]
                del self._locks[server_id]

    # =========================================================================
    # Queries
    # =========================================================================

    def get_connection(self, server_id: str) -> McpConnection | None:
        """Get the live connection for a server, if any."""
        return self._connections.get(server_id)

    def get_connections(self) -> list[McpConnection]:
        """Get every live connection."""
        return list(self._connections.values())

    def get_state(self, server_id: str) -> ConnectionState:
        """Get the recorded state of a server; unknown servers are disconnected."""
        return self._states.get(server_id, ConnectionState())

    def get_states(self) -> dict[str, ConnectionState]:
        """Get the recorded state of every server seen by the registry."""
        return dict(self._states)

    def is_connected(self, server_id: str) -> bool:
        """Check whether a server has a live connection."""
        connection = self._connections.get(server_id)
        return connection is not None and connection.is_connected

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self, descriptor: ServerDescriptor) -> ConnectionSnapshot:
        """Connect to a server, replacing any existing connection with the same id.

        Raises:
            McpConfigurationError: If the descriptor is invalid
            McpTimeoutError: If connecting takes longer than the connect timeout
            McpTransportError: If the transport or handshake fails
        """
        server_id = descriptor.id
        async with self._serialized(server_id):
            await self._remove(server_id)

            with tracer.start_as_current_span("mcp.connect") as span:
                span.set_attribute("mcp.server_id", server_id)
                span.set_attribute("mcp.transport", descriptor.transport.value)
                start_time = time.time()

                try:
                    descriptor.validate()
                    self._set_state(
                        server_id,
                        ConnectionState(status=ConnectionStatus.CONNECTING, last_connected=self.get_state(server_id).last_connected),
                    )
                    logger.info(f"Connecting to MCP server '{server_id}' ({descriptor.transport.value})")
                    connection = await asyncio.wait_for(
                        self._open(descriptor, self._client_name),
                        timeout=self._connect_timeout,
                    )
                except TimeoutError as e:
                    error = McpTimeoutError("Connection timeout", e)
                    self._record_failure(server_id, error, descriptor.transport.value)
                    span.set_attribute("mcp.connect.success", False)
                    raise error from e
                except asyncio.CancelledError:
                    previous = self.get_state(server_id)
                    self._set_state(server_id, ConnectionState(status=ConnectionStatus.DISCONNECTED, last_connected=previous.last_connected))
                    raise
                except Exception as e:
                    self._record_failure(server_id, e, descriptor.transport.value)
                    span.set_attribute("mcp.connect.success", False)
                    raise

                self._connections[server_id] = connection
                self._set_state(
                    server_id,
                    ConnectionState(status=ConnectionStatus.CONNECTED, last_connected=connection.connected_at),
                )
                span.set_attribute("mcp.connect.success", True)
                span.set_attribute("mcp.variant", connection.client.transport.variant.value)

            connections_opened.add(1, {"transport": connection.client.transport.variant.value})
            connection_time.record((time.time() - start_time) * 1000, {"status": "success"})
            logger.info(
                f"Connected to MCP server '{server_id}' over {connection.client.transport.variant.value} "
                f"(tools={len(connection.tools)}, resources={len(connection.resources)}, prompts={len(connection.prompts)})"
            )
            self._publish(
                ConnectionEstablishedEvent(
                    server_id=server_id,
                    server_name=connection.server_info.name if connection.server_info else descriptor.name,
                    capabilities=connection.capabilities,
                )
            )
            return connection.snapshot()

    async def _open(self, descriptor: ServerDescriptor, client_name: str) -> McpConnection:
        """Establish a session and probe it; closes everything on failure."""
        client = await self._transport_factory.establish(descriptor, client_name=client_name, client_version=self._client_version)
        try:
            probe: ProbeResult = await self._prober.probe(client)
            if not client.is_connected:
                raise McpConnectionError("Connection lost while probing capabilities")
        except BaseException:
            await client.close()
            raise

        return McpConnection(
            descriptor=descriptor,
            client=client,
            capabilities=probe.capabilities,
            tools=probe.tools,
            resources=probe.resources,
            prompts=probe.prompts,
        )

    async def disconnect(self, server_id: str) -> None:
        """Disconnect a server. A no-op when it is not connected; never raises."""
        async with self._serialized(server_id):
            if not await self._remove(server_id):
                logger.debug(f"MCP server '{server_id}' is not connected, nothing to disconnect")

    async def _remove(self, server_id: str) -> bool:
        """Remove and close a connection. Caller holds the identifier's lock."""
        connection = self._connections.pop(server_id, None)
        if connection is None:
            return False

        try:
            await connection.client.close()
        except Exception as e:
            logger.warning(f"Error closing MCP server '{server_id}': {e}")

        previous = self.get_state(server_id)
        self._set_state(server_id, ConnectionState(status=ConnectionStatus.DISCONNECTED, last_connected=previous.last_connected))
        connections_closed.add(1)
        logger.info(f"Disconnected from MCP server '{server_id}'")
        self._publish(ConnectionClosedEvent(server_id=server_id))
        return True

    async def check_connection(self, descriptor: ServerDescriptor) -> ConnectionTestResult:
        """Connect with a throwaway client, list tools, and close.

        Never touches the registered connections or their state.
        """
        try:
            descriptor.validate()
        except McpConfigurationError as e:
            return ConnectionTestResult(success=False, error=str(e))

        logger.info(f"Testing connection to MCP server '{descriptor.id}'")
        try:
            server_info = await asyncio.wait_for(self._test_once(descriptor), timeout=self._connect_timeout)
        except TimeoutError:
            logger.info(f"Connection test for '{descriptor.id}' timed out after {self._connect_timeout}s")
            return ConnectionTestResult(success=False, error="Connection timeout")
        except (McpTransportError, McpConfigurationError) as e:
            logger.info(f"Connection test for '{descriptor.id}' failed: {e}")
            return ConnectionTestResult(success=False, error=str(e))

        return ConnectionTestResult(success=True, server_info=server_info)

    async def _test_once(self, descriptor: ServerDescriptor) -> McpServerInfo | None:
        client = await self._transport_factory.establish(
            descriptor,
            client_name=f"{self._client_name}-test",
            client_version=self._client_version,
        )
        try:
            try:
                await client.list_tools()
            except McpTransportError as e:
                logger.debug(f"Connection test for '{descriptor.id}': tools/list failed: {e}")
            return client.server_info
        finally:
            await client.close()

    async def test_connection(self, descriptor: ServerDescriptor) -> bool:
        """Check that a server can be reached and initialized."""
        return (await self.check_connection(descriptor)).success

    async def close_all(self) -> None:
        """Disconnect every server."""
        server_ids = list(self._connections.keys())
        if server_ids:
            logger.info(f"Closing {len(server_ids)} MCP connection(s)")
        for server_id in server_ids:
            await self.disconnect(server_id)

    # =========================================================================
    # State & events
    # =========================================================================

    def _set_state(self, server_id: str, state: ConnectionState) -> None:
        self._states[server_id] = state
        self._publish(
            ConnectionStatusChangedEvent(
                server_id=server_id,
                status=state.status,
                error_message=state.error_message,
            )
        )

    def _record_failure(self, server_id: str, error: BaseException, transport: str) -> None:
        message = str(error) or type(error).__name__
        logger.warning(f"Failed to connect to MCP server '{server_id}': {message}")
        connections_failed.add(1, {"transport": transport, "error": type(error).__name__})
        previous = self.get_state(server_id)
        self._set_state(
            server_id,
            ConnectionState(status=ConnectionStatus.ERROR, last_connected=previous.last_connected, error_message=message),
        )

    def _publish(self, event: ConnectionEvent) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)

    # =========================================================================
    # Static Configuration Method
    # =========================================================================

    @staticmethod
    def configure(builder: "WebApplicationBuilder", event_bus: ConnectionEventBus | None = None) -> "McpConnectionRegistry":
        """Configure and register the connection registry.

        Builds the secrets resolver, transport factory and prober from the
        application settings, registers the registry as a singleton and a
        hosted service closing every connection on shutdown.

        Args:
            builder: WebApplicationBuilder instance for service registration
            event_bus: Channel receiving lifecycle events

        Returns:
            The registry instance
        """
        from application.settings import app_settings

        logger.info("🔧 Configuring McpConnectionRegistry...")

        env_resolver = McpEnvironmentResolver(secrets_path=app_settings.mcp_secrets_path)
        transport_factory = TransportFactory(
            env_resolver=env_resolver,
            request_timeout=app_settings.mcp_request_timeout,
            sse_read_timeout=app_settings.mcp_sse_read_timeout,
        )
        registry = McpConnectionRegistry(
            transport_factory=transport_factory,
            prober=McpCapabilityProber(),
            event_bus=event_bus,
            connect_timeout=app_settings.mcp_connect_timeout,
            client_name=app_settings.mcp_client_name,
            client_version=app_settings.mcp_client_version,
        )

        builder.services.add_singleton(McpConnectionRegistry, singleton=registry)
        builder.services.add_singleton(HostedService, singleton=McpConnectionRegistryHostedService(registry))
        logger.info("✅ McpConnectionRegistry configured")
        return registry


class McpConnectionRegistryHostedService(HostedService):
    """Hosted service closing every MCP connection on application shutdown."""

    def __init__(self, registry: McpConnectionRegistry):
        self._registry = registry

    async def start_async(self) -> None:
        logger.info("✅ McpConnectionRegistry started")

    async def stop_async(self) -> None:
        await self._registry.close_all()
        logger.info("✅ McpConnectionRegistry stopped")
