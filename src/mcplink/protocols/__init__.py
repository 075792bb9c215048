"""Protocol layer — MCP client engine and its error taxonomy."""

from mcplink.protocols.errors import (
    CallFailedError,
    ConnectionFailedError,
    EndpointTimeoutError,
    EndpointUnreachableError,
    JsonRpcProtocolError,
    ProtocolError,
    ProtocolRejectedError,
    RequestTimeoutError,
)

__all__ = [
    "CallFailedError",
    "ConnectionFailedError",
    "EndpointTimeoutError",
    "EndpointUnreachableError",
    "JsonRpcProtocolError",
    "ProtocolError",
    "ProtocolRejectedError",
    "RequestTimeoutError",
]
