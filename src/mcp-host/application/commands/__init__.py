"""Application commands package.

Commands changing connection state or invoking tools on MCP servers.
All commands are re-exported here for Neuroglia framework auto-discovery.
"""

from .call_tool_command import CallToolCommand, CallToolCommandHandler
from .connect_server_command import ConnectServerCommand, ConnectServerCommandHandler
from .disconnect_server_command import DisconnectServerCommand, DisconnectServerCommandHandler
from .test_server_connection_command import TestServerConnectionCommand, TestServerConnectionCommandHandler

__all__ = [
    # Connection commands
    "ConnectServerCommand",
    "ConnectServerCommandHandler",
    "DisconnectServerCommand",
    "DisconnectServerCommandHandler",
    "TestServerConnectionCommand",
    "TestServerConnectionCommandHandler",
    # Invocation commands
    "CallToolCommand",
    "CallToolCommandHandler",
]
