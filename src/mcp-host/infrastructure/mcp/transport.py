"""MCP transport interface.

Defines the abstract base class for all MCP transport implementations and
the error taxonomy shared by the transport and protocol layers.

A transport is a bidirectional channel of JSON-RPC messages. It knows
nothing about request correlation: that belongs to the protocol client.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from domain.enums import McpTransportVariant

logger = logging.getLogger(__name__)


class McpTransportError(Exception):
    """Base exception for MCP transport errors.

    Raised when transport-level operations fail (connection, send, receive).
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class McpConnectionError(McpTransportError):
    """Error establishing or maintaining connection to MCP server."""

    pass


class McpTransportRejectedError(McpConnectionError):
    """The endpoint refused the streamable HTTP protocol.

    Distinct from network failures: this is the signal that triggers the
    fallback to the legacy SSE transport.
    """

    def __init__(self, message: str, status_code: int, cause: Exception | None = None):
        super().__init__(message, cause)
        self.status_code = status_code


class McpProtocolError(McpTransportError):
    """Error in MCP protocol communication (invalid messages, etc.)."""

    pass


class McpTimeoutError(McpTransportError):
    """Timeout waiting for MCP server response."""

    pass


# Sentinel placed on the inbound queue when the channel ends
_END_OF_STREAM = object()


class IMcpTransport(ABC):
    """Abstract base class for MCP transport implementations.

    Implementations:
        - StdioTransport: Subprocess with newline-delimited JSON over stdin/stdout
        - StreamableHttpTransport: HTTP POST with JSON or SSE responses
        - SseTransport: Legacy HTTP+SSE (GET event stream, POST endpoint)

    Inbound messages are buffered on an unbounded queue by the implementation
    and consumed through ``messages()``, which may be iterated only once.

    Usage:
        transport = StdioTransport(command="uvx", args=["my-mcp-server"])
        await transport.open()
        try:
            await transport.send({"jsonrpc": "2.0", "id": 1, "method": "ping"})
            async for message in transport.messages():
                ...
        finally:
            await transport.close()
    """

    variant: McpTransportVariant

    def __init__(self) -> None:
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()
        self._consumed = False
        self._closed = False
        self._ended = False

    @abstractmethod
    async def open(self) -> None:
        """Open the channel.

        Raises:
            McpConnectionError: If the process cannot be spawned or the
                endpoint is unreachable
        """
        ...

    @abstractmethod
    async def send(self, message: dict[str, Any]) -> None:
        """Send one JSON-RPC message.

        Raises:
            McpConnectionError: If the channel is closed or broken
        """
        ...

    @abstractmethod
    async def _close_channel(self) -> None:
        """Release the process or sockets. Called at most once."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the channel is usable for sending."""
        ...

    def set_protocol_version(self, protocol_version: str) -> None:
        """Record the protocol version negotiated during the handshake."""
        return None

    async def messages(self) -> AsyncIterator[dict[str, Any]]:
        """Iterate inbound messages until the peer closes the channel.

        Raises:
            McpTransportError: If called more than once
        """
        if self._consumed:
            raise McpTransportError("Transport messages can only be consumed once")
        self._consumed = True
        while True:
            item = await self._inbound.get()
            if item is _END_OF_STREAM:
                return
            yield item

    async def close(self) -> None:
        """Close the transport.

        Idempotent and never raises: failures while releasing resources are
        logged. Ends ``messages()`` for the consumer.
        """
        if self._closed:
            return
        self._closed = True
        try:
            await self._close_channel()
        except Exception as e:
            logger.warning(f"Error closing {self!r}: {e}")
        finally:
            self._end_stream()

    def _deliver(self, message: dict[str, Any]) -> None:
        """Queue an inbound message for the consumer."""
        if not self._ended:
            self._inbound.put_nowait(message)

    def _end_stream(self) -> None:
        """Signal the consumer that no more messages will arrive."""
        if not self._ended:
            self._ended = True
            self._inbound.put_nowait(_END_OF_STREAM)

    async def __aenter__(self) -> "IMcpTransport":
        """Async context manager entry."""
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
