"""Tests for the stdio transport against a real subprocess."""

import sys

import pytest

from infrastructure.mcp import McpClient, McpConnectionError, McpTransportError, StdioTransport
from tests.fixtures.factories import STDIO_PEER_SCRIPT


def peer_transport(*flags: str, environment: dict[str, str] | None = None) -> StdioTransport:
    """Create a transport spawning the stdio peer script."""
    return StdioTransport(command=sys.executable, args=[str(STDIO_PEER_SCRIPT), *flags], environment=environment)


class TestStdioTransportConstruction:
    """Test StdioTransport construction."""

    def test_empty_command_is_rejected(self) -> None:
        """Test an empty command raises."""
        with pytest.raises(ValueError, match="Command cannot be empty"):
            StdioTransport(command="")

    def test_not_open_initially(self) -> None:
        """Test a new transport is not open."""
        transport = peer_transport()

        assert not transport.is_open
        assert "stdio_peer.py" in repr(transport)

    @pytest.mark.asyncio
    async def test_send_before_open_raises(self) -> None:
        """Test sending on an unopened transport fails."""
        with pytest.raises(McpConnectionError, match="not connected"):
            await peer_transport().send({"jsonrpc": "2.0", "method": "ping"})


@pytest.mark.integration
class TestStdioTransportSubprocess:
    """Test StdioTransport with the stdio peer subprocess."""

    @pytest.mark.asyncio
    async def test_missing_command(self) -> None:
        """Test a command that does not exist fails to open."""
        transport = StdioTransport(command="definitely-not-an-mcp-server-binary")

        with pytest.raises(McpConnectionError, match="not found"):
            await transport.open()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("command", "environment"),
        [
            (f"{sys.executable}\x00evil", None),
            (sys.executable, {"BAD=NAME": "x"}),
        ],
    )
    async def test_unspawnable_command_is_a_connection_error(self, command: str, environment: dict[str, str] | None) -> None:
        """Test arguments the OS refuses fail the open as a connection error."""
        transport = StdioTransport(command=command, args=[str(STDIO_PEER_SCRIPT)], environment=environment)

        with pytest.raises(McpConnectionError, match="Failed to spawn"):
            await transport.open()

        assert not transport.is_open

    @pytest.mark.asyncio
    async def test_handshake_and_tool_call(self) -> None:
        """Test a full session over a real subprocess."""
        transport = peer_transport("--banner")
        client = McpClient(transport)
        await transport.open()
        try:
            server_info = await client.initialize(timeout=10.0)
            tools = await client.list_tools(timeout=10.0)
            result = await client.call_tool("echo", {"text": "hello"}, timeout=10.0)
        finally:
            await client.close()

        assert server_info.name == "stdio-peer"
        assert [tool.name for tool in tools] == ["echo"]
        assert result.get_text() == "hello"
        assert not transport.is_open

    @pytest.mark.asyncio
    async def test_environment_is_merged(self) -> None:
        """Test descriptor env reaches the subprocess."""
        transport = peer_transport(environment={"MCP_TEST_VALUE": "from-descriptor"})
        client = McpClient(transport)
        await transport.open()
        try:
            await client.initialize(timeout=10.0)
            result = await client.call_tool("env", {"name": "MCP_TEST_VALUE"}, timeout=10.0)
        finally:
            await client.close()

        assert result.get_text() == "from-descriptor"

    @pytest.mark.asyncio
    async def test_process_exit_fails_pending_request(self) -> None:
        """Test a crashing server fails the in-flight request."""
        transport = peer_transport()
        client = McpClient(transport)
        await transport.open()
        try:
            await client.initialize(timeout=10.0)
            with pytest.raises(McpTransportError):
                await client.call_tool("exit", {}, timeout=10.0)
            assert not client.is_connected
        finally:
            await client.close()

        assert transport.returncode == 3

    @pytest.mark.asyncio
    async def test_close_terminates_process(self) -> None:
        """Test closing stops the subprocess and is idempotent."""
        transport = peer_transport()
        await transport.open()
        assert transport.is_open

        await transport.close()
        await transport.close()

        assert not transport.is_open
        assert transport.returncode is not None
