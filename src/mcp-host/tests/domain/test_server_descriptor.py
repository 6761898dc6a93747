"""Tests for server descriptors, connection state and connection events."""

from datetime import UTC, datetime

import pytest

from domain.enums import ConnectionStatus, McpTransportType
from domain.events import ConnectionEstablishedEvent, ConnectionStatusChangedEvent, ToolCalledEvent
from domain.models import ConnectionState, McpConfigurationError, ServerCapabilities, ServerDescriptor
from tests.fixtures.factories import DescriptorFactory

# ============================================================================
# DESERIALIZATION
# ============================================================================


class TestServerDescriptorFromDict:
    """Test ServerDescriptor.from_dict."""

    def test_transport_defaults_to_stdio(self) -> None:
        """Test a payload without transport describes a stdio server."""
        descriptor = ServerDescriptor.from_dict({"name": "Files", "command": "npx"}, server_id="files")

        assert descriptor.id == "files"
        assert descriptor.transport == McpTransportType.STDIO
        assert descriptor.command == "npx"
        assert descriptor.args == []

    def test_http_payload(self) -> None:
        """Test an http payload keeps url and headers."""
        descriptor = ServerDescriptor.from_dict(
            {
                "id": "search",
                "name": "Search",
                "transport": "http",
                "url": "https://search.example.com/mcp",
                "headers": {"Authorization": "Bearer abc"},
            }
        )

        assert descriptor.transport == McpTransportType.HTTP
        assert descriptor.url == "https://search.example.com/mcp"
        assert descriptor.headers == {"Authorization": "Bearer abc"}

    def test_string_args_are_split(self) -> None:
        """Test args given as one string are split on whitespace."""
        descriptor = ServerDescriptor.from_dict({"command": "uvx", "args": "mcp-server-git --repository ."}, server_id="git")

        assert descriptor.args == ["mcp-server-git", "--repository", "."]

    def test_name_defaults_to_id(self) -> None:
        """Test a missing name falls back to the identifier."""
        descriptor = ServerDescriptor.from_dict({"command": "uvx"}, server_id="git")

        assert descriptor.name == "git"

    def test_unknown_transport_is_rejected(self) -> None:
        """Test an unknown transport raises a configuration error."""
        with pytest.raises(McpConfigurationError, match="Unsupported transport type: websocket"):
            ServerDescriptor.from_dict({"transport": "websocket"}, server_id="ws")

    def test_non_object_payload_is_rejected(self) -> None:
        """Test a non-dict payload raises a configuration error."""
        with pytest.raises(McpConfigurationError, match="must be an object"):
            ServerDescriptor.from_dict(["npx"])  # type: ignore[arg-type]

    def test_to_dict_inverts_from_dict(self) -> None:
        """Test serializing a parsed payload gives back its fields."""
        payload = DescriptorFactory.payload()
        descriptor = ServerDescriptor.from_dict(payload, server_id="calculator")

        data = descriptor.to_dict()

        assert data["id"] == "calculator"
        assert data["transport"] == "stdio"
        assert data["command"] == payload["command"]
        assert data["args"] == payload["args"]
        assert data["env"] == payload["env"]
        assert "url" not in data


# ============================================================================
# VALIDATION
# ============================================================================


class TestServerDescriptorValidate:
    """Test ServerDescriptor.validate."""

    def test_valid_descriptors(self) -> None:
        """Test complete descriptors validate."""
        DescriptorFactory.stdio().validate()
        DescriptorFactory.http().validate()

    def test_stdio_requires_command(self) -> None:
        """Test a stdio descriptor without command is invalid."""
        with pytest.raises(McpConfigurationError, match="Command is required"):
            DescriptorFactory.stdio(command="  ").validate()

    def test_http_requires_url(self) -> None:
        """Test an http descriptor without url is invalid."""
        with pytest.raises(McpConfigurationError, match="URL is required"):
            DescriptorFactory.http(url=None).validate()

    @pytest.mark.parametrize("url", ["ftp://files.example.com", "localhost:9000/mcp", "http://"])
    def test_http_requires_http_url(self, url: str) -> None:
        """Test non-HTTP URLs are invalid."""
        with pytest.raises(McpConfigurationError, match="Invalid URL"):
            DescriptorFactory.http(url=url).validate()

    def test_id_is_required(self) -> None:
        """Test an empty identifier is invalid."""
        with pytest.raises(McpConfigurationError, match="Server id is required"):
            DescriptorFactory.stdio(server_id="").validate()


class TestServerDescriptorOverrides:
    """Test merging resolved secrets into descriptors."""

    def test_descriptor_values_win(self) -> None:
        """Test values carried by the descriptor take precedence."""
        descriptor = DescriptorFactory.http(headers={"Authorization": "Bearer mine"})

        merged = descriptor.with_overrides(env={"TOKEN": "x"}, headers={"Authorization": "Bearer file", "X-Team": "core"})

        assert merged.headers == {"Authorization": "Bearer mine", "X-Team": "core"}
        assert merged.env == {"TOKEN": "x"}
        assert descriptor.headers == {"Authorization": "Bearer mine"}


# ============================================================================
# STATE & EVENTS
# ============================================================================


class TestConnectionState:
    """Test ConnectionState serialization."""

    def test_default_state_is_disconnected(self) -> None:
        """Test the default state."""
        assert ConnectionState().to_dict() == {"status": "disconnected", "lastConnected": None, "errorMessage": None}

    def test_error_state(self) -> None:
        """Test an error state keeps its message and timestamp."""
        connected_at = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)
        state = ConnectionState(status=ConnectionStatus.ERROR, last_connected=connected_at, error_message="Connection timeout")

        data = state.to_dict()

        assert data["status"] == "error"
        assert data["lastConnected"] == connected_at.isoformat()
        assert data["errorMessage"] == "Connection timeout"


class TestConnectionEvents:
    """Test connection event serialization."""

    def test_status_changed_event(self) -> None:
        """Test enum values are serialized by value with camelCase keys."""
        event = ConnectionStatusChangedEvent(server_id="github", status=ConnectionStatus.ERROR, error_message="boom")

        data = event.to_dict()

        assert data["type"] == "connection_status_changed"
        assert data["serverId"] == "github"
        assert data["status"] == "error"
        assert data["errorMessage"] == "boom"
        assert "occurredAt" in data

    def test_established_event_carries_capabilities(self) -> None:
        """Test capabilities are serialized as flags."""
        event = ConnectionEstablishedEvent(
            server_id="github",
            server_name="GitHub",
            capabilities=ServerCapabilities(tools=True),
        )

        assert event.to_dict()["capabilities"] == {"resources": False, "tools": True, "prompts": False}

    def test_tool_called_event(self) -> None:
        """Test invocation events carry names only."""
        data = ToolCalledEvent(server_id="calculator", tool_name="add").to_dict()

        assert data["type"] == "tool_called"
        assert data["toolName"] == "add"
        assert data["isError"] is False
