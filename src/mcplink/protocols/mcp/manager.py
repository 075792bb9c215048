"""ConnectionManager — tracks named connections to several MCP servers."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

import httpx

from mcplink.config import ClientSettings
from mcplink.protocols.mcp.connection import MCPConnection
from mcplink.protocols.mcp.endpoints import normalize_url
from mcplink.protocols.mcp.models import ToolDescriptor, ToolInvocationResult

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^https?://")
_NON_IDENTIFIER = re.compile(r"[^a-zA-Z0-9]")


def parse_server_entry(entry: str) -> tuple[str, str]:
    """Split a ``"name:url"`` entry or derive a name for a bare URL.

    A bare URL is named after its host with every non-alphanumeric character
    replaced by ``_`` (``https://mcp.example.com/x`` → ``mcp_example_com``).
    """
    entry = entry.strip()
    if ":" in entry and not entry.startswith("http"):
        name, url = entry.split(":", 1)
        return name.strip(), url.strip()
    host = _SCHEME.sub("", entry).split("/", 1)[0] or "server"
    return _NON_IDENTIFIER.sub("_", host), entry


class ConnectionManager:
    """Name → :class:`MCPConnection` registry with tool facades.

    All connections share one ``httpx.AsyncClient``; the manager closes it on
    :meth:`aclose` if it created it.

    Usage::

        async with ConnectionManager() as manager:
            await manager.connect_servers_from_list(["local:http://localhost:8080/mcp"])
            result = await manager.call_tool("local", "echo", {"text": "hi"})
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient()
        self._connections: dict[str, MCPConnection] = {}

    async def __aenter__(self) -> ConnectionManager:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.disconnect_all()
        if self._owns_http:
            await self._http.aclose()

    def _create_connection(self, url: str) -> MCPConnection:
        return MCPConnection(url, http=self._http, settings=self._settings)

    async def connect_server(self, name: str, url: str) -> bool:
        """Connect *name* to *url*.

        Idempotent for an unchanged URL; a changed URL tears the old
        connection down first.  Failed connections are not kept.
        """
        normalized = normalize_url(url)
        existing = self._connections.get(name)
        if existing is not None:
            if existing.server_url == normalized:
                logger.debug("Server %s already connected", name)
                return True
            logger.debug("URL changed for server %s, reconnecting", name)
            await self.disconnect_server(name)

        connection = self._create_connection(normalized)
        if await connection.connect():
            self._connections[name] = connection
            logger.info("Connected to MCP server: %s at %s", name, normalized)
            return True

        await connection.disconnect()
        logger.error("Failed to connect to MCP server: %s at %s", name, normalized)
        return False

    async def connect_servers_from_list(self, entries: Iterable[str]) -> dict[str, bool]:
        """Connect every entry independently; partial failure is normal."""
        results: dict[str, bool] = {}
        for entry in entries:
            if not entry.strip():
                continue
            name, url = parse_server_entry(entry)
            logger.debug("Connecting server %r with URL %s", name, url)
            results[name] = await self.connect_server(name, url)
        return results

    async def disconnect_server(self, name: str) -> None:
        connection = self._connections.pop(name, None)
        if connection is not None:
            await connection.disconnect()
            logger.info("Disconnected from MCP server: %s", name)

    async def disconnect_all(self) -> None:
        for name in list(self._connections):
            await self.disconnect_server(name)

    def get_client(self, name: str) -> MCPConnection | None:
        return self._connections.get(name)

    def get_connected_servers(self) -> list[str]:
        return list(self._connections)

    def get_all_servers_info(self) -> dict[str, str]:
        """Map each server name to its URL."""
        return {name: conn.server_url for name, conn in self._connections.items()}

    async def list_all_tools(self) -> dict[str, list[ToolDescriptor]]:
        """Tool catalog of every connected server, keyed by server name."""
        return {name: await conn.list_tools() for name, conn in self._connections.items()}

    async def call_tool(
        self,
        server: str,
        tool: str,
        arguments: dict[str, Any] | None = None,
    ) -> ToolInvocationResult | None:
        """Invoke *tool* on *server*; ``None`` if unknown or the call failed."""
        connection = self._connections.get(server)
        if connection is None:
            logger.warning("No connected MCP server named %s", server)
            return None
        return await connection.call_tool(tool, arguments)
