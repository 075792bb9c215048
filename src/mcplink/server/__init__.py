"""The bundled MCP tool server."""

from mcplink.server.app import build_dispatcher, create_app
from mcplink.server.dispatcher import MethodDispatcher

__all__ = ["MethodDispatcher", "build_dispatcher", "create_app"]
