"""Infrastructure layer for cross-cutting concerns."""

from .mcp import (
    IMcpTransport,
    McpClient,
    McpEnvironmentResolver,
    McpTransportError,
    SseTransport,
    StdioTransport,
    StreamableHttpTransport,
    TransportFactory,
)

__all__ = [
    # MCP
    "IMcpTransport",
    "McpClient",
    "McpEnvironmentResolver",
    "McpTransportError",
    "SseTransport",
    "StdioTransport",
    "StreamableHttpTransport",
    "TransportFactory",
]
