"""MCP protocol — HTTP client engine for Model Context Protocol servers."""

from mcplink.protocols.mcp.connection import ConnectionState, MCPConnection
from mcplink.protocols.mcp.endpoints import candidate_endpoints, health_endpoint, sse_endpoint
from mcplink.protocols.mcp.manager import ConnectionManager
from mcplink.protocols.mcp.models import (
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    Notification,
    ResourceContent,
    ResourceDescriptor,
    ToolDescriptor,
    ToolInvocationResult,
)
from mcplink.protocols.mcp.sse import NotificationBroadcaster, SSEListener
from mcplink.protocols.mcp.transport import JsonRpcTransport

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcTransport",
    "MCPConnection",
    "Notification",
    "NotificationBroadcaster",
    "ResourceContent",
    "ResourceDescriptor",
    "SSEListener",
    "ToolDescriptor",
    "ToolInvocationResult",
    "candidate_endpoints",
    "health_endpoint",
    "sse_endpoint",
]
