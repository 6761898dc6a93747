"""Domain enumerations package.

Enumerations shared by the domain, infrastructure and application layers
of the MCP host.
"""

from .connection import ConnectionStatus, McpTransportType, McpTransportVariant

__all__ = [
    # Descriptor enums
    "McpTransportType",
    # Runtime enums
    "McpTransportVariant",
    "ConnectionStatus",
]
