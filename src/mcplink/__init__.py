"""mcplink — Model Context Protocol client engine and tool server."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from mcplink.protocols.mcp.connection import MCPConnection as MCPConnection
    from mcplink.protocols.mcp.manager import ConnectionManager as ConnectionManager

_LAZY_EXPORTS = {
    "ConnectionManager": "mcplink.protocols.mcp.manager",
    "MCPConnection": "mcplink.protocols.mcp.connection",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'mcplink' has no attribute {name!r}")
