"""Domain value objects for the MCP host.

All value objects use @dataclass(frozen=True) for immutability.
"""

from .connection_state import ConnectionState, ServerCapabilities
from .server_descriptor import McpConfigurationError, ServerDescriptor

__all__ = [
    "ConnectionState",
    "McpConfigurationError",
    "ServerCapabilities",
    "ServerDescriptor",
]
