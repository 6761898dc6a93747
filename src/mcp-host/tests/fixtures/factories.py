"""Test data factories for MCP host tests."""

import sys
from pathlib import Path
from typing import Any

from domain.enums import McpTransportType
from domain.models import ServerDescriptor
from infrastructure.mcp import McpToolResult

STDIO_PEER_SCRIPT = Path(__file__).parent / "stdio_peer.py"


class DescriptorFactory:
    """Factory for ServerDescriptor instances."""

    @staticmethod
    def stdio(server_id: str = "calculator", **overrides: Any) -> ServerDescriptor:
        """Create a stdio descriptor. The command is never spawned by fake transports."""
        defaults: dict[str, Any] = {
            "id": server_id,
            "name": server_id.title(),
            "transport": McpTransportType.STDIO,
            "command": "fake-mcp-server",
            "args": ["--quiet"],
        }
        defaults.update(overrides)
        return ServerDescriptor(**defaults)

    @staticmethod
    def stdio_peer(server_id: str = "stdio-peer", peer_args: list[str] | None = None, **overrides: Any) -> ServerDescriptor:
        """Create a descriptor spawning the bundled stdio peer script."""
        defaults: dict[str, Any] = {
            "id": server_id,
            "name": "Stdio Peer",
            "transport": McpTransportType.STDIO,
            "command": sys.executable,
            "args": [str(STDIO_PEER_SCRIPT), *(peer_args or [])],
        }
        defaults.update(overrides)
        return ServerDescriptor(**defaults)

    @staticmethod
    def http(server_id: str = "remote", url: str = "http://mcp.test/mcp", **overrides: Any) -> ServerDescriptor:
        """Create an http descriptor."""
        defaults: dict[str, Any] = {
            "id": server_id,
            "name": server_id.title(),
            "transport": McpTransportType.HTTP,
            "url": url,
        }
        defaults.update(overrides)
        return ServerDescriptor(**defaults)

    @staticmethod
    def payload(**overrides: Any) -> dict[str, Any]:
        """Create a descriptor payload as sent in a request body."""
        payload: dict[str, Any] = {
            "name": "Calculator",
            "transport": "stdio",
            "command": "fake-mcp-server",
            "args": ["--quiet"],
            "env": {"LOG_LEVEL": "debug"},
        }
        payload.update(overrides)
        return payload


class ToolResultFactory:
    """Factory for McpToolResult instances."""

    @staticmethod
    def text(text: str = "42", is_error: bool = False) -> McpToolResult:
        """Create a single-block text result."""
        return McpToolResult(content=[{"type": "text", "text": text}], is_error=is_error)
