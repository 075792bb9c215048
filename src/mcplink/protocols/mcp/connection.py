"""MCPConnection — one remote MCP server reached over HTTP.

Owns the base URL, the lazily established session id, the request-id counter
and the SSE listener.  Every public call degrades to ``None`` (or an empty
list) on failure so a broken server only makes its own tools unavailable.
"""

from __future__ import annotations

import enum
import itertools
import logging
import time
from typing import Any

import httpx

from mcplink.config import ClientSettings
from mcplink.protocols.errors import ProtocolError
from mcplink.protocols.mcp.endpoints import health_endpoint, normalize_url, sse_endpoint
from mcplink.protocols.mcp.models import (
    ClientInfo,
    InitializeParams,
    InitializeResult,
    JsonRpcRequest,
    ResourceContent,
    ResourceDescriptor,
    ResourceReadParams,
    ResourcesList,
    ToolCallParams,
    ToolDescriptor,
    ToolInvocationResult,
    ToolsList,
)
from mcplink.protocols.mcp.sse import NotificationBroadcaster, SSEListener, Subscription
from mcplink.protocols.mcp.transport import JsonRpcTransport

logger = logging.getLogger(__name__)


class ConnectionState(str, enum.Enum):
    UNCONNECTED = "unconnected"
    INITIALIZING = "initializing"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


def fallback_session_id() -> str:
    """Locally generated session id for servers that never send one."""
    return f"session_{int(time.time() * 1000)}"


class MCPConnection:
    """Client handle for one MCP server.

    Usage::

        async with MCPConnection("http://localhost:8080/mcp") as conn:
            tools = await conn.list_tools()
            result = await conn.call_tool("echo", {"text": "hi"})

    Pass a shared ``http`` client to pool connections across servers; a
    connection closes only the client it created itself, and opens a fresh
    one if it is connected again after a disconnect.
    """

    def __init__(
        self,
        server_url: str,
        *,
        http: httpx.AsyncClient | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        self.server_url = normalize_url(server_url)
        self.session_id: str | None = None
        self.state = ConnectionState.UNCONNECTED
        self.server_info: InitializeResult | None = None
        self._settings = settings or ClientSettings()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient()
        self._ids = itertools.count(1)
        self._transport = JsonRpcTransport(self._http, self.server_url, self._settings)
        self._broadcaster = NotificationBroadcaster(self._settings.sse.queue_size)
        self._sse: SSEListener | None = None

    async def __aenter__(self) -> MCPConnection:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.disconnect()

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def is_sse_connected(self) -> bool:
        return self._sse is not None and self._sse.connected

    @property
    def transport(self) -> JsonRpcTransport:
        return self._transport

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Health-probe, initialize, capture the session id and start SSE.

        Returns ``False`` if the ``initialize`` handshake fails on every
        candidate endpoint; never raises for network or protocol errors.
        """
        logger.debug("Connecting to MCP server: %s", self.server_url)
        if self._owns_http and self._http.is_closed:
            # Reconnecting after disconnect() closed our own client.
            self._http = httpx.AsyncClient()
            self._transport = JsonRpcTransport(self._http, self.server_url, self._settings)
        self.state = ConnectionState.INITIALIZING

        if self._settings.health_check and not await self.check_health():
            logger.warning(
                "MCP server %s may not be available, continuing with connection attempt",
                self.server_url,
            )

        result = await self.initialize()
        if result is None:
            logger.error("Failed to initialize MCP session with %s", self.server_url)
            self.state = ConnectionState.UNCONNECTED
            return False

        self.server_info = result
        self.session_id = result.session_id or self.session_id or fallback_session_id()
        logger.debug("MCP session initialized: %s", self.session_id)

        self.state = ConnectionState.CONNECTED
        if self._settings.sse.enabled:
            self._start_sse()

        logger.info("Connected to MCP server at %s", self.server_url)
        return True

    async def check_health(self) -> bool:
        """GET the health endpoint; any failure means "unknown", never fatal."""
        endpoint = health_endpoint(self.server_url)
        try:
            response = await self._http.get(
                endpoint,
                timeout=httpx.Timeout(
                    self._settings.request_timeout, connect=self._settings.connect_timeout
                ),
            )
        except httpx.HTTPError as exc:
            logger.debug("Health check failed (not critical): %s", exc)
            return False
        if response.is_success:
            logger.debug("MCP server health check passed")
            return True
        logger.debug("MCP server health check returned: %s", response.status_code)
        return False

    async def initialize(self) -> InitializeResult | None:
        params = InitializeParams(
            protocol_version=self._settings.protocol_version,
            client_info=ClientInfo(
                name=self._settings.client_name,
                version=self._settings.client_version,
            ),
        )
        return await self.call("initialize", params.model_dump(by_alias=True))

    async def disconnect(self) -> None:
        """Cancel the SSE listener and forget the session.

        In-flight calls are not cancelled; they finish on their own timeout.
        """
        if self._sse is not None:
            await self._sse.stop()
            self._sse = None
        self.session_id = None
        self.state = ConnectionState.DISCONNECTED
        if self._owns_http:
            await self._http.aclose()
        logger.debug("Disconnected from MCP server %s", self.server_url)

    def _start_sse(self) -> None:
        if self._sse is None:
            self._sse = SSEListener(
                self._http,
                sse_endpoint(self.server_url),
                self._broadcaster,
                session_id=lambda: self.session_id,
                settings=self._settings.sse,
            )
        self._sse.start()

    async def restart_sse(self) -> None:
        """Reopen the SSE stream on demand."""
        if self._sse is None:
            self._start_sse()
        else:
            await self._sse.restart()

    def subscribe(self) -> Subscription:
        """Subscribe to server notifications received over SSE."""
        return self._broadcaster.subscribe()

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------

    def next_request_id(self) -> int:
        return next(self._ids)

    async def request(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send one call and return its decoded result.

        Raises:
            CallFailedError: When every candidate endpoint failed.  The
                subclass says why (unreachable, rejected, timed out).
        """
        request = JsonRpcRequest(id=self.next_request_id(), method=method, params=params)
        reply = await self._transport.send(request, self.session_id)
        if reply.session_id and reply.session_id != self.session_id:
            logger.debug("Session ID received from headers: %s", reply.session_id)
            self.session_id = reply.session_id
        return reply.result

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Like :meth:`request` but returns ``None`` on any failure."""
        try:
            return await self.request(method, params)
        except ProtocolError as exc:
            logger.debug("%s on %s failed: %s", method, self.server_url, exc)
            return None

    async def list_tools(self) -> list[ToolDescriptor]:
        result: ToolsList | None = await self.call("tools/list")
        return result.tools if result is not None else []

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolInvocationResult | None:
        params = ToolCallParams(name=name, arguments=arguments)
        return await self.call("tools/call", params.model_dump(exclude_none=True))

    async def list_resources(self) -> list[ResourceDescriptor]:
        result: ResourcesList | None = await self.call("resources/list")
        return result.resources if result is not None else []

    async def get_resource(self, uri: str) -> ResourceContent | None:
        return await self.call("resources/read", ResourceReadParams(uri=uri).model_dump())
