"""MCP legacy HTTP+SSE transport.

The client opens a long-lived GET event stream. The server first sends an
``endpoint`` event naming the URL to POST messages to, then delivers every
server message as a ``message`` event on the same stream.
"""

import asyncio
import json
import logging
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx
from httpx_sse import SSEError, aconnect_sse

from domain.enums import McpTransportVariant

from .transport import IMcpTransport, McpConnectionError, McpProtocolError, McpTimeoutError

logger = logging.getLogger(__name__)


class SseTransport(IMcpTransport):
    """Legacy HTTP+SSE transport.

    Used directly for servers known to be SSE-only, or by the transport
    factory as the fallback when an endpoint rejects streamable HTTP.
    """

    variant = McpTransportVariant.SSE

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        sse_read_timeout: float = 300.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize SSE transport.

        Args:
            url: SSE endpoint URL (e.g., http://localhost:9000/sse)
            headers: Static headers attached to the stream and every POST
            timeout: Timeout for POSTs and for receiving the endpoint event, in seconds
            sse_read_timeout: Read timeout on the event stream, in seconds
            http_transport: Optional httpx transport (used to inject a mock in tests)
        """
        super().__init__()
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._sse_read_timeout = sse_read_timeout
        self._http_transport = http_transport

        self._client: httpx.AsyncClient | None = None
        self._endpoint_url: str | None = None
        self._reader_task: asyncio.Task[None] | None = None

    @property
    def endpoint_url(self) -> str | None:
        """POST endpoint announced by the server."""
        return self._endpoint_url

    @property
    def is_open(self) -> bool:
        """Whether the endpoint is known and the transport not closed."""
        return self._endpoint_url is not None and not self._closed

    async def open(self) -> None:
        """Open the event stream and wait for the endpoint event.

        Raises:
            McpConnectionError: If the stream cannot be opened
            McpProtocolError: If the endpoint event is invalid
            McpTimeoutError: If no endpoint event arrives in time
        """
        if self._client is not None or self._closed:
            raise McpConnectionError("Transport already opened")

        logger.info(f"Connecting to SSE endpoint: {self._url}")
        self._client = httpx.AsyncClient(
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, read=self._sse_read_timeout),
            transport=self._http_transport,
        )
        endpoint: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._reader_task = asyncio.create_task(self._read_stream(endpoint))

        try:
            self._endpoint_url = await asyncio.wait_for(endpoint, timeout=self._timeout)
        except TimeoutError as e:
            await self.close()
            raise McpTimeoutError(f"No endpoint event received within {self._timeout}s", e) from e
        except BaseException:
            await self.close()
            raise
        logger.debug(f"SSE endpoint: {self._endpoint_url}")

    def _resolve_endpoint(self, data: str) -> str:
        """Resolve the announced endpoint and check it shares the stream's origin."""
        endpoint_url = urljoin(self._url, data.strip())
        url_parsed = urlparse(self._url)
        endpoint_parsed = urlparse(endpoint_url)
        if url_parsed.netloc != endpoint_parsed.netloc or url_parsed.scheme != endpoint_parsed.scheme:
            raise McpProtocolError(f"Endpoint origin does not match connection origin: {endpoint_url}")
        return endpoint_url

    async def _read_stream(self, endpoint: asyncio.Future[str]) -> None:
        """Background task reading the event stream."""
        assert self._client is not None
        try:
            async with aconnect_sse(self._client, "GET", self._url) as event_source:
                status_code = event_source.response.status_code
                if status_code != 200:
                    raise McpConnectionError(f"SSE connection failed: HTTP {status_code}")

                async for sse in event_source.aiter_sse():
                    if sse.event == "endpoint":
                        if not endpoint.done():
                            endpoint.set_result(self._resolve_endpoint(sse.data))
                    elif sse.event == "message":
                        try:
                            self._deliver(json.loads(sse.data))
                        except json.JSONDecodeError:
                            logger.warning(f"Ignoring malformed SSE message: {sse.data[:200]}")
                    else:
                        logger.debug(f"Ignoring SSE event: {sse.event}")

            if not endpoint.done():
                endpoint.set_exception(McpConnectionError("SSE stream closed before an endpoint was received"))
        except asyncio.CancelledError:
            raise
        except (McpConnectionError, McpProtocolError) as e:
            self._fail_endpoint(endpoint, e)
        except SSEError as e:
            self._fail_endpoint(endpoint, McpProtocolError(f"Invalid SSE stream: {e}", e))
        except httpx.TimeoutException as e:
            self._fail_endpoint(endpoint, McpTimeoutError(f"SSE stream timed out: {e}", e))
        except httpx.HTTPError as e:
            self._fail_endpoint(endpoint, McpConnectionError(f"Connection error: {e}", e))
        finally:
            self._end_stream()

    @staticmethod
    def _fail_endpoint(endpoint: asyncio.Future[str], error: Exception) -> None:
        """Report a stream failure to open(), or log it once connected."""
        if not endpoint.done():
            endpoint.set_exception(error)
        else:
            logger.warning(f"SSE stream ended: {error}")

    async def send(self, message: dict[str, Any]) -> None:
        """POST one message to the announced endpoint.

        Raises:
            McpConnectionError: If not connected or the endpoint is unreachable
            McpProtocolError: If the endpoint answers with an HTTP error
            McpTimeoutError: If the POST times out
        """
        if not self.is_open or self._client is None or self._endpoint_url is None:
            raise McpConnectionError("Transport not connected")

        logger.debug(f"POST {self._endpoint_url} ({message.get('method') or 'response'})")
        try:
            response = await self._client.post(self._endpoint_url, json=message, timeout=self._timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise McpTimeoutError(f"Request timed out after {self._timeout}s", e) from e
        except httpx.HTTPStatusError as e:
            raise McpProtocolError(f"HTTP error {e.response.status_code}: {e.response.text[:200]}", e) from e
        except httpx.RequestError as e:
            raise McpConnectionError(f"Connection error: {e}", e) from e

    async def _close_channel(self) -> None:
        """Stop the reader and close the client."""
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.debug(f"SSE transport to {self._url} closed")

    def __repr__(self) -> str:
        """String representation."""
        status = "open" if self.is_open else "closed"
        return f"<SseTransport({self._url}) [{status}]>"
