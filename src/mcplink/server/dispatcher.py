"""JSON-RPC method dispatch for the tool server.

The method table is fixed when the dispatcher is built.  Tool failures are
results, not errors: only an unknown method, bad params or an invalid
envelope produce a JSON-RPC ``error`` member.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from mcplink.protocols.mcp.models import (
    PROTOCOL_VERSION,
    InitializeResult,
    JsonRpcResponse,
    ResourceReadParams,
    ResourcesList,
    ServerInfo,
    ToolCallParams,
    ToolsList,
)
from mcplink.server.errors import (
    INVALID_REQUEST,
    InvalidParamsError,
    JsonRpcServerError,
    MethodNotFoundError,
)
from mcplink.server.resources import ResourceCatalog
from mcplink.server.tools.base import ToolRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[Any]]


class MethodDispatcher:
    """Routes decoded JSON-RPC requests to the tool registry and resource catalog."""

    def __init__(
        self,
        registry: ToolRegistry,
        resources: ResourceCatalog,
        *,
        server_name: str,
        server_version: str,
    ) -> None:
        self.registry = registry
        self.resources = resources
        self._initialize_result = InitializeResult(
            protocol_version=PROTOCOL_VERSION,
            capabilities={},
            server_info=ServerInfo(name=server_name, version=server_version),
        ).model_dump(by_alias=True, exclude_none=True)
        self._methods: dict[str, Handler] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    async def handle(self, payload: Any) -> JsonRpcResponse:
        """Dispatch one decoded request body and build the response envelope."""
        if not isinstance(payload, dict) or not isinstance(payload.get("method"), str):
            request_id = payload.get("id") if isinstance(payload, dict) else None
            return JsonRpcResponse.failure(request_id, INVALID_REQUEST, "Invalid Request")

        request_id = payload.get("id")
        method = payload["method"]
        params = payload.get("params") or {}
        logger.debug("Dispatching %s (id=%s)", method, request_id)

        try:
            handler = self._methods.get(method)
            if handler is None:
                raise MethodNotFoundError(method)
            if not isinstance(params, dict):
                raise InvalidParamsError("params must be an object")
            result = await handler(params)
        except JsonRpcServerError as exc:
            logger.info("Request %s rejected: %s", method, exc)
            return JsonRpcResponse.failure(request_id, exc.code, str(exc))
        return JsonRpcResponse.success(request_id, result)

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._initialize_result

    async def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return ToolsList(tools=self.registry.descriptors()).model_dump(by_alias=True, exclude_none=True)

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            call = ToolCallParams.model_validate(params)
        except ValidationError as exc:
            raise InvalidParamsError(f"Invalid tools/call params: {exc.error_count()} error(s)") from exc
        result = await self.registry.invoke(call.name, call.arguments)
        return result.model_dump(by_alias=True, exclude_none=True)

    async def _list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        listing = ResourcesList(resources=self.resources.descriptors())
        return listing.model_dump(by_alias=True, exclude_none=True)

    async def _read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            read = ResourceReadParams.model_validate(params)
        except ValidationError as exc:
            raise InvalidParamsError("resources/read requires a 'uri'") from exc
        return self.resources.read(read.uri).model_dump(by_alias=True, exclude_none=True)
