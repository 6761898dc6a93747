"""McpClient - JSON-RPC session over an MCP transport.

The client owns its transport. A background reader task consumes the
transport's inbound messages and resolves pending requests by id, so any
number of requests may be in flight at once. Requests sent by the server
(``ping``) are answered; notifications are logged.
"""

import asyncio
import itertools
import logging
from typing import Any

from .models import (
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    McpError,
    McpMessageType,
    McpNotification,
    McpPromptDefinition,
    McpPromptResult,
    McpRequest,
    McpResourceDefinition,
    McpResourceReadResult,
    McpResponse,
    McpServerInfo,
    McpToolDefinition,
    McpToolResult,
)
from .transport import IMcpTransport, McpConnectionError, McpProtocolError, McpTimeoutError, McpTransportError

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "ai-chat-mcp-host"
DEFAULT_CLIENT_VERSION = "1.0.0"

# notifications/message levels mapped to logging levels
_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


class McpRequestError(McpProtocolError):
    """The server answered a request with a JSON-RPC error."""

    def __init__(self, error: McpError, method: str):
        super().__init__(f"MCP error ({error.code}) on {method}: {error.message}")
        self.error = error
        self.method = method

    @property
    def code(self) -> int:
        return self.error.code

    @property
    def data(self) -> Any:
        return self.error.data


class McpInvocationError(Exception):
    """Base exception for failed tool, resource and prompt invocations.

    Attributes:
        cause: Underlying exception, if any
        code: JSON-RPC error code when the server reported the failure
        data: JSON-RPC error data when the server reported the failure
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause
        self.code: int | None = cause.code if isinstance(cause, McpRequestError) else None
        self.data: Any = cause.data if isinstance(cause, McpRequestError) else None


class ToolInvocationError(McpInvocationError):
    """A tool call failed."""

    pass


class ResourceReadError(McpInvocationError):
    """A resource read failed."""

    pass


class PromptRetrievalError(McpInvocationError):
    """A prompt retrieval failed."""

    pass


class McpClient:
    """MCP protocol client over a single transport.

    Usage:
        client = McpClient(transport)
        await transport.open()
        server_info = await client.initialize(timeout=10.0)
        tools = await client.list_tools()
        result = await client.call_tool("echo", {"text": "hi"})
        await client.close()

    Every request accepts an optional timeout; without one a request waits
    until it is answered or the connection is closed.
    """

    def __init__(
        self,
        transport: IMcpTransport,
        client_name: str = DEFAULT_CLIENT_NAME,
        client_version: str = DEFAULT_CLIENT_VERSION,
    ):
        self._transport = transport
        self._client_name = client_name
        self._client_version = client_version

        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future[McpResponse]] = {}
        self._reader_task: asyncio.Task[None] | None = None
        self._responders: set[asyncio.Task[None]] = set()
        self._server_info: McpServerInfo | None = None
        self._closed = False

    @property
    def transport(self) -> IMcpTransport:
        """The transport owned by this client."""
        return self._transport

    @property
    def server_info(self) -> McpServerInfo | None:
        """Server info from the handshake."""
        return self._server_info

    @property
    def is_connected(self) -> bool:
        """Whether the client is usable: not closed and the transport still alive."""
        if self._closed or not self._transport.is_open:
            return False
        return self._reader_task is None or not self._reader_task.done()

    def _ensure_reader(self) -> None:
        if self._reader_task is None:
            self._reader_task = asyncio.create_task(self._read_loop())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self, timeout: float | None = None) -> McpServerInfo:
        """Perform the MCP initialization handshake.

        1. Send 'initialize' with the latest protocol version and client info
        2. Validate the server's answer
        3. Send 'notifications/initialized'

        Raises:
            McpProtocolError: If the answer is malformed or names an unsupported version
        """
        result = await self.request(
            "initialize",
            {
                "protocolVersion": LATEST_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {
                    "name": self._client_name,
                    "version": self._client_version,
                },
            },
            timeout=timeout,
        )

        protocol_version = result.get("protocolVersion")
        if not isinstance(protocol_version, str):
            raise McpProtocolError("Invalid initialize result: missing protocolVersion")
        if protocol_version not in SUPPORTED_PROTOCOL_VERSIONS:
            raise McpProtocolError(f"Unsupported protocol version from server: {protocol_version}")
        if not isinstance(result.get("capabilities"), dict):
            raise McpProtocolError("Invalid initialize result: missing capabilities")
        server_info = result.get("serverInfo")
        if not isinstance(server_info, dict) or "name" not in server_info:
            raise McpProtocolError("Invalid initialize result: missing serverInfo")

        self._transport.set_protocol_version(protocol_version)
        await self.notify("notifications/initialized")

        self._server_info = McpServerInfo.from_dict(result)
        logger.info(
            f"MCP session initialized with {self._server_info.name} v{self._server_info.version} "
            f"(protocol {protocol_version})"
        )
        return self._server_info

    async def close(self) -> None:
        """Close the transport and fail every pending request.

        This method is idempotent - safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True

        await self._transport.close()

        if self._reader_task is not None and not self._reader_task.done():
            try:
                await asyncio.wait_for(self._reader_task, timeout=1.0)
            except TimeoutError:
                logger.debug("MCP reader did not stop after close, cancelled it")

        for task in list(self._responders):
            task.cancel()

        self._fail_pending(McpConnectionError("MCP client closed"))

    async def __aenter__(self) -> "McpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # JSON-RPC plumbing
    # =========================================================================

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a request and wait for its result.

        Raises:
            McpConnectionError: If the client is closed or the connection is lost
            McpRequestError: If the server answers with a JSON-RPC error
            McpTimeoutError: If no answer arrives within ``timeout``
        """
        if self._closed:
            raise McpConnectionError("MCP client closed")
        self._ensure_reader()
        if not self.is_connected:
            raise McpConnectionError("MCP server connection closed")

        request_id = next(self._ids)
        future: asyncio.Future[McpResponse] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        request = McpRequest(id=request_id, method=method, params=params)
        logger.debug(f"MCP request: {method} (id={request_id})")

        try:
            response = await asyncio.wait_for(self._send_and_wait(request, future), timeout=timeout)
        except TimeoutError as e:
            await self._cancel_request(request_id, f"Timed out after {timeout}s")
            raise McpTimeoutError(f"MCP server did not respond to {method} within {timeout}s", e) from e
        finally:
            self._pending.pop(request_id, None)

        if response.error is not None:
            raise McpRequestError(response.error, method)
        return response.result or {}

    async def _send_and_wait(self, request: McpRequest, future: asyncio.Future[McpResponse]) -> McpResponse:
        await self._transport.send(request.to_dict())
        response = await future
        logger.debug(f"MCP response received for id={request.id}")
        return response

    async def _cancel_request(self, request_id: int, reason: str) -> None:
        """Tell the server to stop working on an abandoned request."""
        if not self.is_connected:
            return
        try:
            await self.notify("notifications/cancelled", {"requestId": request_id, "reason": reason})
        except McpTransportError as e:
            logger.debug(f"Could not send cancellation for id={request_id}: {e}")

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification (no response expected)."""
        if self._closed:
            raise McpConnectionError("MCP client closed")
        logger.debug(f"MCP notification: {method}")
        await self._transport.send(McpNotification(method=method, params=params).to_dict())

    async def _read_loop(self) -> None:
        """Dispatch inbound messages until the transport ends."""
        try:
            async for message in self._transport.messages():
                self._dispatch(message)
        except asyncio.CancelledError:
            raise
        except McpTransportError as e:
            logger.warning(f"MCP message stream failed: {e}")
        finally:
            if not self._closed:
                logger.info(f"MCP connection lost: {self._transport!r}")
            self._fail_pending(McpConnectionError("MCP server connection closed"))

    def _dispatch(self, message: Any) -> None:
        message_type = McpMessageType.of(message)

        if message_type == McpMessageType.RESPONSE:
            self._resolve(McpResponse.from_dict(message))
        elif message_type == McpMessageType.REQUEST:
            task = asyncio.create_task(self._answer(McpRequest.from_dict(message)))
            self._responders.add(task)
            task.add_done_callback(self._responders.discard)
        elif message_type == McpMessageType.NOTIFICATION:
            self._on_notification(McpNotification.from_dict(message))
        else:
            logger.warning(f"Ignoring invalid JSON-RPC message: {str(message)[:200]}")

    def _resolve(self, response: McpResponse) -> None:
        request_id = response.id
        if isinstance(request_id, str) and request_id.isdigit():
            request_id = int(request_id)
        future = self._pending.get(request_id)  # type: ignore[arg-type]
        if future is None or future.done():
            logger.debug(f"Ignoring response for unknown request id={response.id}")
            return

        future.set_result(response)

    async def _answer(self, request: McpRequest) -> None:
        """Reply to a server-initiated request."""
        if request.method == "ping":
            response = McpResponse(id=request.id, result={})
        else:
            response = McpResponse(
                id=request.id,
                error=McpError(code=McpError.METHOD_NOT_FOUND, message=f"Method not found: {request.method}"),
            )
        try:
            await self._transport.send(response.to_dict())
        except McpTransportError as e:
            logger.debug(f"Could not answer server request {request.method}: {e}")

    def _on_notification(self, notification: McpNotification) -> None:
        if notification.method == "notifications/message":
            params = notification.params or {}
            level = _LOG_LEVELS.get(str(params.get("level", "info")), logging.INFO)
            origin = params.get("logger") or (self._server_info.name if self._server_info else "server")
            logger.log(level, f"MCP server log [{origin}]: {params.get('data')}")
        else:
            logger.debug(f"MCP notification received: {notification.method}")

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)

    # =========================================================================
    # Operations
    # =========================================================================

    async def ping(self, timeout: float | None = None) -> None:
        """Check the server is responsive."""
        await self.request("ping", timeout=timeout)

    async def _list_all(self, method: str, key: str, timeout: float | None) -> list[dict[str, Any]]:
        """Collect every page of a list method."""
        items: list[dict[str, Any]] = []
        seen_cursors: set[str] = set()
        cursor: str | None = None
        while True:
            result = await self.request(method, {"cursor": cursor} if cursor else None, timeout=timeout)
            items.extend(result.get(key) or [])
            cursor = result.get("nextCursor")
            if not cursor or cursor in seen_cursors:
                return items
            seen_cursors.add(cursor)

    async def list_tools(self, timeout: float | None = None) -> list[McpToolDefinition]:
        """Get every tool from the server, in server order."""
        return [McpToolDefinition.from_dict(tool) for tool in await self._list_all("tools/list", "tools", timeout)]

    async def list_resources(self, timeout: float | None = None) -> list[McpResourceDefinition]:
        """Get every resource from the server, in server order."""
        items = await self._list_all("resources/list", "resources", timeout)
        return [McpResourceDefinition.from_dict(resource) for resource in items]

    async def list_prompts(self, timeout: float | None = None) -> list[McpPromptDefinition]:
        """Get every prompt from the server, in server order."""
        items = await self._list_all("prompts/list", "prompts", timeout)
        return [McpPromptDefinition.from_dict(prompt) for prompt in items]

    async def call_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> McpToolResult:
        """Execute a tool call on the MCP server.

        A result with ``isError`` set is returned as-is; only a JSON-RPC
        error raises.

        Raises:
            ToolInvocationError: If the server answers with a JSON-RPC error
        """
        try:
            result = await self.request("tools/call", {"name": tool_name, "arguments": arguments or {}}, timeout=timeout)
        except McpRequestError as e:
            raise ToolInvocationError(f"Tool '{tool_name}' failed: {e.error.message}", e) from e
        return McpToolResult.from_dict(result)

    async def read_resource(self, uri: str, timeout: float | None = None) -> McpResourceReadResult:
        """Read a resource by URI.

        Raises:
            ResourceReadError: If the server answers with a JSON-RPC error
        """
        try:
            result = await self.request("resources/read", {"uri": uri}, timeout=timeout)
        except McpRequestError as e:
            raise ResourceReadError(f"Reading resource '{uri}' failed: {e.error.message}", e) from e
        return McpResourceReadResult.from_dict(result)

    async def get_prompt(
        self,
        prompt_name: str,
        arguments: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> McpPromptResult:
        """Render a prompt template.

        Raises:
            PromptRetrievalError: If the server answers with a JSON-RPC error
        """
        params: dict[str, Any] = {"name": prompt_name}
        if arguments:
            params["arguments"] = {key: str(value) for key, value in arguments.items()}
        try:
            result = await self.request("prompts/get", params, timeout=timeout)
        except McpRequestError as e:
            raise PromptRetrievalError(f"Prompt '{prompt_name}' failed: {e.error.message}", e) from e
        return McpPromptResult.from_dict(result)

    def __repr__(self) -> str:
        status = "connected" if self.is_connected else "disconnected"
        return f"<McpClient({self._transport!r}) [{status}]>"
