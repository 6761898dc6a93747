"""Tests for McpCapabilityProber."""

from typing import Any

import pytest

from application.services import McpCapabilityProber
from infrastructure.mcp import McpClient
from tests.fixtures.fake_peer import FakeTransport, ScriptedMcpServer


async def open_client(server: ScriptedMcpServer) -> McpClient:
    """Open an initialized client on a scripted server."""
    transport = FakeTransport(server)
    client = McpClient(transport)
    await transport.open()
    await client.initialize(timeout=1.0)
    return client


class TestMcpCapabilityProber:
    """Test probing capabilities independently."""

    @pytest.mark.asyncio
    async def test_full_server(self) -> None:
        """Test a server supporting everything."""
        client = await open_client(ScriptedMcpServer())

        result = await McpCapabilityProber().probe(client)

        assert result.capabilities.to_dict() == {"resources": True, "tools": True, "prompts": True}
        assert len(result.tools) == 2
        assert len(result.resources) == 1
        assert len(result.prompts) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_each_probe_fails_alone(self) -> None:
        """Test an unsupported list method only turns its own capability off."""
        client = await open_client(ScriptedMcpServer(resources=None))

        result = await McpCapabilityProber().probe(client)

        assert result.capabilities.to_dict() == {"resources": False, "tools": True, "prompts": True}
        assert result.resources == []
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_catalog_is_supported(self) -> None:
        """Test an empty list still counts as supported."""
        client = await open_client(ScriptedMcpServer(tools=[], resources=None, prompts=None))

        result = await McpCapabilityProber().probe(client)

        assert result.capabilities.tools is True
        assert result.tools == []
        await client.close()

    @pytest.mark.asyncio
    async def test_probing_ignores_declared_capabilities(self) -> None:
        """Test capabilities come from probing, not from the handshake."""

        class UnderstatingServer(ScriptedMcpServer):
            def _result(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
                result = super()._result(method, params)
                if method == "initialize":
                    result["capabilities"] = {}
                return result

        client = await open_client(UnderstatingServer())

        result = await McpCapabilityProber().probe(client)

        assert result.capabilities.to_dict() == {"resources": True, "tools": True, "prompts": True}
        await client.close()

    @pytest.mark.asyncio
    async def test_malformed_catalog(self) -> None:
        """Test a catalog with invalid entries turns the capability off."""
        client = await open_client(ScriptedMcpServer(tools=[{"description": "no name"}]))

        result = await McpCapabilityProber().probe(client)

        assert result.capabilities.tools is False
        assert result.capabilities.resources is True
        await client.close()

    @pytest.mark.asyncio
    async def test_probe_timeout(self) -> None:
        """Test an unanswered list method times out and counts as unsupported."""
        client = await open_client(ScriptedMcpServer(silent_methods={"prompts/list"}))

        result = await McpCapabilityProber(probe_timeout=0.05).probe(client)

        assert result.capabilities.prompts is False
        assert result.capabilities.tools is True
        await client.close()
