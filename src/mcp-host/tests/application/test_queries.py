"""Application layer query handler tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from application.queries import (
    GetConnectionsQuery,
    GetConnectionsQueryHandler,
    GetPromptQuery,
    GetPromptQueryHandler,
    ReadResourceQuery,
    ReadResourceQueryHandler,
)
from application.services import McpConnectionRegistry, McpInvocationService, NotConnectedError
from infrastructure.mcp import McpConnectionError, PromptRetrievalError, ResourceReadError
from tests.fixtures.factories import DescriptorFactory
from tests.fixtures.fake_peer import FakeTransportFactory


class TestGetConnectionsQuery:
    """Test GetConnectionsQuery handler."""

    @pytest.mark.asyncio
    @pytest.mark.query
    async def test_lists_every_known_server(self, registry: McpConnectionRegistry, transport_factory: FakeTransportFactory) -> None:
        """Test connected and failed servers are both reported."""
        await registry.connect(DescriptorFactory.stdio("calculator"))
        transport_factory.fail_open["broken"] = McpConnectionError("Connection refused")
        with pytest.raises(McpConnectionError):
            await registry.connect(DescriptorFactory.stdio("broken"))
        handler = GetConnectionsQueryHandler(registry=registry)

        result = await handler.handle_async(GetConnectionsQuery())

        assert result.is_success
        servers = {server["id"]: server for server in result.data}
        assert servers["calculator"]["status"] == "connected"
        assert servers["calculator"]["lastConnected"] is not None
        assert [tool["name"] for tool in servers["calculator"]["tools"]] == ["add", "divide"]
        assert servers["broken"]["status"] == "error"
        assert servers["broken"]["errorMessage"] == "Connection refused"
        assert "tools" not in servers["broken"]
        await registry.close_all()

    @pytest.mark.asyncio
    @pytest.mark.query
    async def test_single_server_without_catalogs(self, registry: McpConnectionRegistry) -> None:
        """Test filtering by id and leaving catalogs out."""
        await registry.connect(DescriptorFactory.stdio("calculator"))
        await registry.connect(DescriptorFactory.stdio("other"))
        handler = GetConnectionsQueryHandler(registry=registry)

        result = await handler.handle_async(GetConnectionsQuery(server_id="calculator", include_catalogs=False))

        assert len(result.data) == 1
        assert result.data[0]["id"] == "calculator"
        assert result.data[0]["capabilities"]["tools"] is True
        assert "tools" not in result.data[0]
        await registry.close_all()

    @pytest.mark.asyncio
    @pytest.mark.query
    async def test_unknown_server_is_disconnected(self, registry: McpConnectionRegistry) -> None:
        """Test an unknown id reports the default state."""
        handler = GetConnectionsQueryHandler(registry=registry)

        result = await handler.handle_async(GetConnectionsQuery(server_id="nobody"))

        assert result.data == [{"id": "nobody", "status": "disconnected", "lastConnected": None, "errorMessage": None}]


class TestReadResourceQuery:
    """Test ReadResourceQuery handler."""

    @pytest.mark.asyncio
    @pytest.mark.query
    async def test_read_resource(self, registry: McpConnectionRegistry, invocation_service: McpInvocationService) -> None:
        """Test reading a resource from a connected server."""
        await registry.connect(DescriptorFactory.stdio("calculator"))
        handler = ReadResourceQueryHandler(invocation_service=invocation_service)

        result = await handler.handle_async(ReadResourceQuery(server_id="calculator", uri="file:///readme.md"))

        assert result.is_success
        assert result.data["result"]["contents"][0]["uri"] == "file:///readme.md"
        await registry.close_all()

    @pytest.mark.asyncio
    @pytest.mark.query
    @pytest.mark.parametrize(
        ("error", "status_code"),
        [(NotConnectedError("calculator"), 404), (ResourceReadError("Reading resource failed"), 400)],
    )
    async def test_errors(self, mock_invocation_service: MagicMock, error: Exception, status_code: int) -> None:
        """Test error mapping."""
        mock_invocation_service.read_resource = AsyncMock(side_effect=error)
        handler = ReadResourceQueryHandler(invocation_service=mock_invocation_service)

        result = await handler.handle_async(ReadResourceQuery(server_id="calculator", uri="file:///x"))

        assert not result.is_success
        assert result.status_code == status_code


class TestGetPromptQuery:
    """Test GetPromptQuery handler."""

    @pytest.mark.asyncio
    @pytest.mark.query
    async def test_get_prompt(self, registry: McpConnectionRegistry, invocation_service: McpInvocationService) -> None:
        """Test retrieving a prompt from a connected server."""
        await registry.connect(DescriptorFactory.stdio("calculator"))
        handler = GetPromptQueryHandler(invocation_service=invocation_service)

        result = await handler.handle_async(GetPromptQuery(server_id="calculator", prompt_name="explain", arguments={"topic": "sse"}))

        assert result.is_success
        assert result.data["result"]["messages"][0]["content"]["text"] == "Explain sse"
        await registry.close_all()

    @pytest.mark.asyncio
    @pytest.mark.query
    @pytest.mark.parametrize(
        ("error", "status_code"),
        [(NotConnectedError("calculator"), 404), (PromptRetrievalError("Prompt failed"), 400)],
    )
    async def test_errors(self, mock_invocation_service: MagicMock, error: Exception, status_code: int) -> None:
        """Test error mapping."""
        mock_invocation_service.get_prompt = AsyncMock(side_effect=error)
        handler = GetPromptQueryHandler(invocation_service=mock_invocation_service)

        result = await handler.handle_async(GetPromptQuery(server_id="calculator", prompt_name="explain"))

        assert not result.is_success
        assert result.status_code == status_code
