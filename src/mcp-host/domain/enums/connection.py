"""Connection related enumerations."""

from enum import Enum


class McpTransportType(str, Enum):
    """Transport kind declared by a server descriptor."""

    STDIO = "stdio"  # Local subprocess, newline-delimited JSON over stdin/stdout
    HTTP = "http"  # Remote endpoint, streamable HTTP with SSE fallback


class McpTransportVariant(str, Enum):
    """Concrete wire variant used by an open transport.

    An HTTP descriptor resolves to either STREAMABLE_HTTP or, when the
    endpoint refuses it, the legacy SSE variant.
    """

    STDIO = "stdio"
    STREAMABLE_HTTP = "streamable_http"
    SSE = "sse"


class ConnectionStatus(str, Enum):
    """Observable lifecycle status of a server connection."""

    DISCONNECTED = "disconnected"  # No live connection
    CONNECTING = "connecting"  # Connect or test in progress
    CONNECTED = "connected"  # Handshake and probing succeeded
    ERROR = "error"  # Last connect attempt failed
