"""MCP (Model Context Protocol) infrastructure layer.

This package provides the client side of the protocol for talking to
MCP servers. It includes:

- Transport abstractions and implementations (stdio, streamable HTTP, SSE)
- MCP protocol message models
- The protocol client (request correlation, handshake, typed operations)
- Secrets resolution for server descriptors
- Transport creation with HTTP to SSE fallback
"""

from .client import (
    McpClient,
    McpInvocationError,
    McpRequestError,
    PromptRetrievalError,
    ResourceReadError,
    ToolInvocationError,
)
from .env_resolver import McpEnvironmentResolver, ResolutionResult
from .models import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    McpError,
    McpNotification,
    McpPromptArgument,
    McpPromptDefinition,
    McpPromptResult,
    McpRequest,
    McpResourceDefinition,
    McpResourceReadResult,
    McpResponse,
    McpServerInfo,
    McpToolDefinition,
    McpToolResult,
)
from .sse_transport import SseTransport
from .stdio_transport import StdioTransport
from .streamable_http_transport import StreamableHttpTransport
from .transport import (
    IMcpTransport,
    McpConnectionError,
    McpProtocolError,
    McpTimeoutError,
    McpTransportError,
    McpTransportRejectedError,
)
from .transport_factory import TransportFactory

__all__ = [
    # Transport interface
    "IMcpTransport",
    "McpTransportError",
    "McpConnectionError",
    "McpTransportRejectedError",
    "McpProtocolError",
    "McpTimeoutError",
    # Transport implementations
    "StdioTransport",
    "StreamableHttpTransport",
    "SseTransport",
    # Factory
    "TransportFactory",
    # Client
    "McpClient",
    "McpRequestError",
    "McpInvocationError",
    "ToolInvocationError",
    "ResourceReadError",
    "PromptRetrievalError",
    # Protocol models
    "LATEST_PROTOCOL_VERSION",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "McpRequest",
    "McpResponse",
    "McpNotification",
    "McpError",
    "McpServerInfo",
    "McpToolDefinition",
    "McpResourceDefinition",
    "McpPromptDefinition",
    "McpPromptArgument",
    "McpToolResult",
    "McpResourceReadResult",
    "McpPromptResult",
    # Environment
    "McpEnvironmentResolver",
    "ResolutionResult",
]
