"""MCP invocation service.

Uniform surface for calling tools, reading resources and retrieving
prompts on a connected server by its identifier, regardless of the
transport behind it. Every call re-resolves the identifier, so a call
racing a disconnect either uses the old connection or fails cleanly.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from opentelemetry import trace

from application.services.connection_events import ConnectionEventBus
from application.services.connection_registry import McpConnection, McpConnectionRegistry
from domain.events import ConnectionEvent, PromptRetrievedEvent, ResourceReadEvent, ToolCalledEvent
from infrastructure.mcp import (
    McpInvocationError,
    McpPromptResult,
    McpResourceReadResult,
    McpToolResult,
    McpTransportError,
    PromptRetrievalError,
    ResourceReadError,
    ToolInvocationError,
)
from observability import invocation_errors, invocation_time, invocations_total

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")


class NotConnectedError(McpInvocationError):
    """The target server has no live connection."""

    def __init__(self, server_id: str):
        super().__init__(f"Server {server_id} is not connected")
        self.server_id = server_id


class McpInvocationService:
    """Invoke tools, resources and prompts on registered connections.

    Usage:
        service = McpInvocationService(registry)
        result = await service.call_tool("github", "search_issues", {"query": "bug"})
    """

    def __init__(
        self,
        registry: McpConnectionRegistry,
        event_bus: ConnectionEventBus | None = None,
        default_timeout: float | None = None,
    ):
        """Initialize the invocation service.

        Args:
            registry: Registry holding the live connections
            event_bus: Optional channel receiving invocation events
            default_timeout: Timeout applied when a call passes none (None waits indefinitely)
        """
        self._registry = registry
        self._event_bus = event_bus
        self._default_timeout = default_timeout

    def _resolve(self, server_id: str) -> McpConnection:
        connection = self._registry.get_connection(server_id)
        if connection is None or not connection.is_connected:
            raise NotConnectedError(server_id)
        return connection

    async def _invoke(
        self,
        operation: str,
        server_id: str,
        target: str,
        error_type: type[McpInvocationError],
        call: Callable[[McpConnection], Awaitable[T]],
    ) -> T:
        """Run one invocation with tracing, metrics and error categorization."""
        connection = self._resolve(server_id)
        start_time = time.time()
        status = "success"

        with tracer.start_as_current_span(f"mcp.{operation}") as span:
            span.set_attribute("mcp.server_id", server_id)
            span.set_attribute("mcp.target", target)
            try:
                return await call(connection)
            except McpInvocationError as e:
                status = "error"
                span.set_attribute("mcp.error", str(e))
                logger.warning(f"{operation} '{target}' on '{server_id}' failed: {e}")
                raise
            except McpTransportError as e:
                status = "error"
                span.set_attribute("mcp.error", str(e))
                logger.warning(f"{operation} '{target}' on '{server_id}' failed: {e}")
                raise error_type(str(e), e) from e
            finally:
                attributes = {"operation": operation, "status": status}
                invocations_total.add(1, attributes)
                invocation_time.record((time.time() - start_time) * 1000, attributes)
                if status == "error":
                    invocation_errors.add(1, {"operation": operation})

    async def call_tool(
        self,
        server_id: str,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> McpToolResult:
        """Call a tool on a connected server.

        Raises:
            NotConnectedError: If the server has no live connection
            ToolInvocationError: If the server or the transport fails the call
        """

        async def call(connection: McpConnection) -> McpToolResult:
            return await connection.client.call_tool(tool_name, arguments or {}, timeout=timeout or self._default_timeout)

        result = await self._invoke("call_tool", server_id, tool_name, ToolInvocationError, call)
        self._publish(ToolCalledEvent(server_id=server_id, tool_name=tool_name, is_error=result.is_error))
        return result

    async def read_resource(self, server_id: str, uri: str, timeout: float | None = None) -> McpResourceReadResult:
        """Read a resource from a connected server.

        Raises:
            NotConnectedError: If the server has no live connection
            ResourceReadError: If the server or the transport fails the read
        """

        async def call(connection: McpConnection) -> McpResourceReadResult:
            return await connection.client.read_resource(uri, timeout=timeout or self._default_timeout)

        result = await self._invoke("read_resource", server_id, uri, ResourceReadError, call)
        self._publish(ResourceReadEvent(server_id=server_id, uri=uri))
        return result

    async def get_prompt(
        self,
        server_id: str,
        prompt_name: str,
        arguments: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> McpPromptResult:
        """Retrieve a rendered prompt from a connected server.

        Raises:
            NotConnectedError: If the server has no live connection
            PromptRetrievalError: If the server or the transport fails the retrieval
        """

        async def call(connection: McpConnection) -> McpPromptResult:
            return await connection.client.get_prompt(prompt_name, arguments, timeout=timeout or self._default_timeout)

        result = await self._invoke("get_prompt", server_id, prompt_name, PromptRetrievalError, call)
        self._publish(PromptRetrievedEvent(server_id=server_id, prompt_name=prompt_name))
        return result

    def _publish(self, event: ConnectionEvent) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)

    @staticmethod
    def configure(
        builder: WebApplicationBuilder,
        registry: McpConnectionRegistry,
        event_bus: ConnectionEventBus | None = None,
    ) -> McpInvocationService:
        """Configure and register the invocation service.

        Args:
            builder: WebApplicationBuilder instance for service registration
            registry: The registry configured by McpConnectionRegistry.configure
            event_bus: Channel receiving invocation events

        Returns:
            The service instance
        """
        logger.info("🔧 Configuring McpInvocationService...")
        service = McpInvocationService(registry=registry, event_bus=event_bus)
        builder.services.add_singleton(McpInvocationService, singleton=service)
        logger.info("✅ McpInvocationService configured")
        return service
