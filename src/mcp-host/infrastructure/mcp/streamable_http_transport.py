"""MCP Streamable HTTP transport for remote MCP servers.

Every outbound message is POSTed to the server URL. The server answers
with ``202 Accepted``, a JSON body, or an SSE stream carrying one or more
JSON-RPC messages. Session ids issued by the server are echoed on every
subsequent request.
"""

import asyncio
import json
import logging
from typing import Any

import httpx
from httpx_sse import EventSource, SSEError

from domain.enums import McpTransportVariant

from .transport import (
    IMcpTransport,
    McpConnectionError,
    McpProtocolError,
    McpTimeoutError,
    McpTransportRejectedError,
)

logger = logging.getLogger(__name__)

MCP_SESSION_ID_HEADER = "mcp-session-id"
MCP_PROTOCOL_VERSION_HEADER = "mcp-protocol-version"

# Status codes on the initialize POST that mean "this endpoint does not speak streamable HTTP"
REJECTION_STATUS_CODES = (400, 404, 405)


class StreamableHttpTransport(IMcpTransport):
    """Streamable HTTP transport.

    Usage:
        transport = StreamableHttpTransport(
            url="http://mcp-server:9000/mcp",
            headers={"Authorization": "Bearer ..."},
        )
        await transport.open()
        await transport.send(initialize_request)
        ...
        await transport.close()
    """

    variant = McpTransportVariant.STREAMABLE_HTTP

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        sse_read_timeout: float = 300.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize streamable HTTP transport.

        Args:
            url: MCP endpoint URL (e.g., http://localhost:9000/mcp)
            headers: Static headers attached to every request
            timeout: Timeout for connecting and for plain HTTP requests, in seconds
            sse_read_timeout: Read timeout while waiting on an SSE stream, in seconds
            http_transport: Optional httpx transport (used to inject a mock in tests)
        """
        super().__init__()
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._sse_read_timeout = sse_read_timeout
        self._http_transport = http_transport

        self._client: httpx.AsyncClient | None = None
        self._session_id: str | None = None
        self._protocol_version: str | None = None
        self._get_stream_task: asyncio.Task[None] | None = None

    @property
    def session_id(self) -> str | None:
        """Session id issued by the server, if any."""
        return self._session_id

    @property
    def is_open(self) -> bool:
        """Whether the HTTP client exists and the transport is not closed."""
        return self._client is not None and not self._closed

    def set_protocol_version(self, protocol_version: str) -> None:
        """Send the negotiated protocol version on subsequent requests."""
        self._protocol_version = protocol_version

    async def open(self) -> None:
        """Create the HTTP client. No request is issued until the first send."""
        if self._client is not None or self._closed:
            raise McpConnectionError("Transport already opened")

        logger.debug(f"Opening streamable HTTP transport to {self._url}")
        self._client = httpx.AsyncClient(
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, read=self._sse_read_timeout),
            transport=self._http_transport,
        )

    def _request_headers(self) -> dict[str, str]:
        """Per-request protocol headers."""
        headers = {
            "Accept": "application/json, text/event-stream",
            "Content-Type": "application/json",
        }
        if self._session_id:
            headers[MCP_SESSION_ID_HEADER] = self._session_id
        if self._protocol_version:
            headers[MCP_PROTOCOL_VERSION_HEADER] = self._protocol_version
        return headers

    async def send(self, message: dict[str, Any]) -> None:
        """POST one message and queue every message carried by the response.

        Raises:
            McpTransportRejectedError: If the endpoint refuses the initialize POST
            McpConnectionError: If the endpoint is unreachable or the session expired
            McpProtocolError: If the server answers with an HTTP error or a malformed body
            McpTimeoutError: If the request times out
        """
        if not self.is_open or self._client is None:
            raise McpConnectionError("Transport not connected")

        method = message.get("method")
        is_initialize = method == "initialize"
        logger.debug(f"POST {self._url} ({method or 'response'})")

        try:
            async with self._client.stream("POST", self._url, json=message, headers=self._request_headers()) as response:
                if is_initialize and response.status_code in REJECTION_STATUS_CODES:
                    raise McpTransportRejectedError(
                        f"Endpoint rejected streamable HTTP (HTTP {response.status_code})",
                        response.status_code,
                    )
                if response.status_code == 404 and self._session_id:
                    raise McpConnectionError("MCP session expired")
                if response.status_code >= 400:
                    await response.aread()
                    raise McpProtocolError(f"HTTP error {response.status_code}: {response.text[:200]}")

                session_id = response.headers.get(MCP_SESSION_ID_HEADER)
                if is_initialize and session_id:
                    self._session_id = session_id

                if response.status_code == 202:
                    return

                content_type = response.headers.get("content-type", "").lower()
                if content_type.startswith("text/event-stream"):
                    await self._consume_event_stream(response)
                elif content_type.startswith("application/json"):
                    await self._consume_json(response)
                else:
                    await response.aread()
                    if response.content:
                        raise McpProtocolError(f"Unexpected content type: {content_type or 'none'}")

        except httpx.TimeoutException as e:
            raise McpTimeoutError(f"Request timed out after {self._timeout}s", e) from e
        except httpx.RequestError as e:
            raise McpConnectionError(f"Connection error: {e}", e) from e

        if method == "notifications/initialized":
            self._start_get_stream()

    async def _consume_json(self, response: httpx.Response) -> None:
        """Queue the message(s) in a JSON response body."""
        body = await response.aread()
        if not body:
            return
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise McpProtocolError(f"Invalid JSON response: {body[:100]!r}", e) from e
        for message in data if isinstance(data, list) else [data]:
            self._deliver(message)

    async def _consume_event_stream(self, response: httpx.Response) -> None:
        """Queue every message event of an SSE response."""
        try:
            async for sse in EventSource(response).aiter_sse():
                if sse.event not in ("message", ""):
                    logger.debug(f"Ignoring SSE event: {sse.event}")
                    continue
                if not sse.data:
                    continue
                try:
                    data = json.loads(sse.data)
                except json.JSONDecodeError:
                    logger.warning(f"Ignoring malformed SSE message: {sse.data[:200]}")
                    continue
                for message in data if isinstance(data, list) else [data]:
                    self._deliver(message)
        except SSEError as e:
            raise McpProtocolError(f"Invalid SSE response: {e}", e) from e

    def _start_get_stream(self) -> None:
        """Start listening for server-initiated messages."""
        if self._get_stream_task is None and not self._closed:
            self._get_stream_task = asyncio.create_task(self._listen_get_stream())

    async def _listen_get_stream(self) -> None:
        """Background GET stream. Unsupported or failing streams are ignored."""
        if self._client is None:
            return
        headers = self._request_headers()
        headers["Accept"] = "text/event-stream"
        headers.pop("Content-Type", None)
        try:
            async with self._client.stream("GET", self._url, headers=headers) as response:
                if response.status_code != 200:
                    logger.debug(f"Server does not offer a GET stream (HTTP {response.status_code})")
                    return
                await self._consume_event_stream(response)
        except asyncio.CancelledError:
            raise
        except (httpx.HTTPError, McpProtocolError) as e:
            logger.debug(f"GET stream ended: {e}")

    async def _close_channel(self) -> None:
        """Stop the GET stream, end the session and close the client."""
        if self._get_stream_task is not None:
            self._get_stream_task.cancel()
            try:
                await self._get_stream_task
            except asyncio.CancelledError:
                pass
            self._get_stream_task = None

        if self._client is None:
            return
        try:
            if self._session_id:
                try:
                    await self._client.delete(self._url, headers={MCP_SESSION_ID_HEADER: self._session_id})
                except httpx.HTTPError as e:
                    logger.debug(f"Session termination failed: {e}")
        finally:
            await self._client.aclose()
            self._client = None
            logger.debug(f"Streamable HTTP transport to {self._url} closed")

    def __repr__(self) -> str:
        """String representation."""
        status = "open" if self.is_open else "closed"
        return f"<StreamableHttpTransport({self._url}) [{status}]>"
