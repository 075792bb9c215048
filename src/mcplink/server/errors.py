"""Error types for the tool server.

Tool-level errors become ``isError: true`` results; only
:class:`JsonRpcServerError` subclasses turn into JSON-RPC ``error`` envelopes.
"""

from __future__ import annotations

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class ServerError(Exception):
    """Base error for all server-side failures."""


class ToolExecutionError(ServerError):
    """A known tool ran but could not complete (bad arguments, missing record...)."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(detail or f"Tool execution failed: {name}")


class UnknownToolError(ServerError):
    """``tools/call`` named a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class StorageError(ServerError):
    """A durable store could not be read or written."""


class JsonRpcServerError(ServerError):
    """An error reported to the client as a JSON-RPC ``error`` member."""

    code = INVALID_REQUEST


class MethodNotFoundError(JsonRpcServerError):
    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class InvalidParamsError(JsonRpcServerError):
    code = INVALID_PARAMS
