"""JSON-RPC envelopes and MCP payload models exchanged with servers.

Envelopes (request, notification, response, error) are shared by every
transport. Catalog entries and results keep the server payload verbatim
where the host does not interpret it (tool input schemas, content blocks).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

JSONRPC_VERSION = "2.0"

LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")


class McpMessageType(str, Enum):
    """Types of JSON-RPC messages."""

    REQUEST = "request"
    RESPONSE = "response"
    NOTIFICATION = "notification"
    INVALID = "invalid"

    @classmethod
    def of(cls, message: Any) -> "McpMessageType":
        """Classify a decoded JSON-RPC message."""
        if not isinstance(message, dict):
            return cls.INVALID
        if "method" in message:
            return cls.REQUEST if "id" in message else cls.NOTIFICATION
        if "id" in message and ("result" in message or "error" in message):
            return cls.RESPONSE
        return cls.INVALID


@dataclass
class McpRequest:
    """MCP JSON-RPC request message.

    Attributes:
        id: Unique request identifier for correlation
        method: The MCP method to invoke (e.g., "tools/list", "tools/call")
        params: Method parameters, omitted from the wire when None
    """

    id: int | str
    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-RPC format."""
        message: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
            "method": self.method,
        }
        if self.params is not None:
            message["params"] = self.params
        return message

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpRequest":
        """Create from JSON-RPC dictionary."""
        return cls(
            id=data["id"],
            method=data["method"],
            params=data.get("params"),
        )


@dataclass
class McpNotification:
    """MCP JSON-RPC notification (a request without an id)."""

    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-RPC format."""
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not None:
            message["params"] = self.params
        return message

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpNotification":
        """Create from JSON-RPC dictionary."""
        return cls(method=data["method"], params=data.get("params"))


@dataclass
class McpError:
    """MCP error object within a response.

    Follows JSON-RPC 2.0 error format.

    Attributes:
        code: Numeric error code
        message: Human-readable error message
        data: Optional additional error data
    """

    code: int
    message: str
    data: Any = None

    # Standard JSON-RPC error codes
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpError":
        """Create from dictionary, tolerating peers that omit fields."""
        return cls(
            code=int(data.get("code", cls.INTERNAL_ERROR)),
            message=str(data.get("message", "Unknown error")),
            data=data.get("data"),
        )


@dataclass
class McpResponse:
    """MCP JSON-RPC response message.

    Contains either a result or an error, but not both.
    """

    id: int | str | None
    result: dict[str, Any] | None = None
    error: McpError | None = None

    def is_error(self) -> bool:
        """Check if this is an error response."""
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-RPC format."""
        response: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.id,
        }
        if self.error:
            response["error"] = self.error.to_dict()
        else:
            response["result"] = self.result or {}
        return response

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpResponse":
        """Create from JSON-RPC dictionary."""
        error_data = data.get("error")
        result = data.get("result")
        return cls(
            id=data.get("id"),
            result=result if isinstance(result, dict) else ({} if error_data is None else None),
            error=McpError.from_dict(error_data) if isinstance(error_data, dict) else None,
        )


@dataclass
class McpServerInfo:
    """Server identity and negotiated parameters from the handshake.

    Attributes:
        name: Server implementation name
        version: Server implementation version
        protocol_version: Protocol version agreed during initialize
        capabilities: Capabilities the server declared (recorded, not trusted)
        instructions: Optional usage hints supplied by the server
    """

    name: str
    version: str
    protocol_version: str
    capabilities: dict[str, Any] = field(default_factory=dict)
    instructions: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "name": self.name,
            "version": self.version,
            "protocolVersion": self.protocol_version,
            "capabilities": self.capabilities,
            "instructions": self.instructions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpServerInfo":
        """Create from an initialize result."""
        server_info = data.get("serverInfo") or {}
        return cls(
            name=server_info.get("name", "unknown"),
            version=server_info.get("version", "unknown"),
            protocol_version=data.get("protocolVersion", LATEST_PROTOCOL_VERSION),
            capabilities=data.get("capabilities") or {},
            instructions=data.get("instructions"),
        )


@dataclass
class McpToolDefinition:
    """Tool definition as returned by tools/list.

    Attributes:
        name: Unique tool name on the server
        description: Human-readable description
        input_schema: JSON Schema for the tool input, passed through untouched
    """

    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpToolDefinition":
        """Create from MCP tools/list entry."""
        return cls(
            name=data["name"],
            description=data.get("description"),
            input_schema=data.get("inputSchema"),
        )


@dataclass
class McpResourceDefinition:
    """Resource definition as returned by resources/list."""

    uri: str
    name: str
    mime_type: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        return {
            "uri": self.uri,
            "name": self.name,
            "mimeType": self.mime_type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpResourceDefinition":
        """Create from MCP resources/list entry."""
        return cls(
            uri=data["uri"],
            name=data.get("name") or data["uri"],
            mime_type=data.get("mimeType"),
            description=data.get("description"),
        )


@dataclass
class McpPromptArgument:
    """Argument accepted by a prompt template."""

    name: str
    description: str | None = None
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        return {
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpPromptArgument":
        """Create from MCP prompt argument entry."""
        return cls(
            name=data["name"],
            description=data.get("description"),
            required=bool(data.get("required", False)),
        )


@dataclass
class McpPromptDefinition:
    """Prompt definition as returned by prompts/list."""

    name: str
    description: str | None = None
    arguments: list[McpPromptArgument] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [argument.to_dict() for argument in self.arguments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpPromptDefinition":
        """Create from MCP prompts/list entry."""
        return cls(
            name=data["name"],
            description=data.get("description"),
            arguments=[McpPromptArgument.from_dict(argument) for argument in data.get("arguments") or []],
        )


@dataclass
class McpToolResult:
    """Result of a tools/call request.

    Attributes:
        content: Content blocks exactly as the server produced them
        is_error: True when the tool itself reported a failure
        structured_content: Optional structured output
        meta: Optional ``_meta`` payload
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False
    structured_content: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None

    def get_text(self) -> str:
        """Concatenate the text blocks of the result."""
        return "\n".join(block.get("text", "") for block in self.content if block.get("type") == "text")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        result: dict[str, Any] = {"content": self.content, "isError": self.is_error}
        if self.structured_content is not None:
            result["structuredContent"] = self.structured_content
        if self.meta is not None:
            result["_meta"] = self.meta
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpToolResult":
        """Create from MCP tools/call result."""
        return cls(
            content=list(data.get("content") or []),
            is_error=bool(data.get("isError", False)),
            structured_content=data.get("structuredContent"),
            meta=data.get("_meta"),
        )


@dataclass
class McpResourceReadResult:
    """Result of a resources/read request; contents kept verbatim."""

    contents: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        return {"contents": self.contents}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpResourceReadResult":
        """Create from MCP resources/read result."""
        return cls(contents=list(data.get("contents") or []))


@dataclass
class McpPromptResult:
    """Result of a prompts/get request; messages kept verbatim."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to MCP format."""
        return {"description": self.description, "messages": self.messages}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpPromptResult":
        """Create from MCP prompts/get result."""
        return cls(
            messages=list(data.get("messages") or []),
            description=data.get("description"),
        )
