"""MCP models — JSON-RPC 2.0 envelopes and MCP payload shapes.

Field names follow Python conventions; the camelCase wire names are kept as
aliases so ``model_dump(by_alias=True)`` produces what MCP servers expect.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request message."""

    model_config = ConfigDict(frozen=True)

    jsonrpc: str = JSONRPC_VERSION
    id: int
    method: str
    params: dict[str, Any] | None = None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message.

    Exactly one of ``result`` and ``error`` must be present.  A peer that
    sends both (or neither) fails validation.
    """

    jsonrpc: str = JSONRPC_VERSION
    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    @model_validator(mode="before")
    @classmethod
    def _exactly_one_member(cls, data: Any) -> Any:
        if isinstance(data, dict):
            has_result = "result" in data and data["result"] is not None
            has_error = "error" in data and data["error"] is not None
            if has_result == has_error:
                msg = "response must carry exactly one of 'result' or 'error'"
                raise ValueError(msg)
        return data

    @classmethod
    def success(cls, request_id: int | str | None, result: Any) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: int | str | None, code: int, message: str) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    def to_wire(self) -> dict[str, Any]:
        """Serialise without the absent member."""
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result
        return data


# ---------------------------------------------------------------------------
# initialize
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ClientInfo(_WireModel):
    name: str
    version: str


class ServerInfo(_WireModel):
    name: str
    version: str


class InitializeParams(_WireModel):
    """Parameters of the ``initialize`` handshake."""

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    client_info: ClientInfo = Field(alias="clientInfo")


class InitializeResult(_WireModel):
    """Result of ``initialize``.

    ``session_id`` is non-standard: some servers put the session token in the
    body instead of the ``X-Session-Id`` header.
    """

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] | None = None
    server_info: ServerInfo | None = Field(default=None, alias="serverInfo")
    session_id: str | None = Field(default=None, alias="sessionId")


# ---------------------------------------------------------------------------
# tools
# ---------------------------------------------------------------------------


class ToolDescriptor(_WireModel):
    """A tool definition as returned by ``tools/list``."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = Field(default=None, alias="inputSchema")


class ToolsList(_WireModel):
    tools: list[ToolDescriptor] = []


class ToolCallParams(_WireModel):
    name: str
    arguments: dict[str, Any] | None = None


class ToolContent(_WireModel):
    """One content item of a tool result."""

    type: str = "text"
    text: str | None = None


class ToolInvocationResult(_WireModel):
    """Result of ``tools/call``.

    The first text item is the canonical human-readable result.
    """

    content: list[ToolContent] = []
    is_error: bool = Field(default=False, alias="isError")

    @property
    def text(self) -> str:
        """Return the first text content item, or ``""``."""
        for item in self.content:
            if item.text is not None:
                return item.text
        return ""

    @classmethod
    def from_text(cls, text: str, *, is_error: bool = False) -> ToolInvocationResult:
        return cls(content=[ToolContent(type="text", text=text)], is_error=is_error)

    @classmethod
    def error(cls, message: str) -> ToolInvocationResult:
        return cls.from_text(message, is_error=True)


# ---------------------------------------------------------------------------
# resources
# ---------------------------------------------------------------------------


class ResourceDescriptor(_WireModel):
    uri: str
    name: str
    description: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class ResourcesList(_WireModel):
    resources: list[ResourceDescriptor] = []


class ResourceReadParams(_WireModel):
    uri: str


class ResourceContent(_WireModel):
    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str | None = None
    blob: str | None = None


# ---------------------------------------------------------------------------
# server push
# ---------------------------------------------------------------------------


class Notification(_WireModel):
    """A server-initiated message delivered over SSE."""

    jsonrpc: str | None = None
    method: str | None = None
    params: dict[str, Any] | None = None
