"""Tool contract and the registry the dispatcher routes ``tools/call`` through."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from mcplink.protocols.mcp.models import ToolDescriptor, ToolInvocationResult
from mcplink.server.errors import ServerError, ToolExecutionError, UnknownToolError
from mcplink.utils.telemetry import ATTR_TOOL_ERROR, ATTR_TOOL_NAME, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


@runtime_checkable
class Tool(Protocol):
    """A named, schema-described server-side tool.

    ``run`` returns the human-readable result text or raises
    :class:`ToolExecutionError`.
    """

    name: str

    @property
    def descriptor(self) -> ToolDescriptor: ...

    async def run(self, arguments: dict[str, Any]) -> str: ...


def require_str(arguments: Mapping[str, Any], key: str, tool: str) -> str:
    """Return a non-blank string argument or raise :class:`ToolExecutionError`."""
    value = arguments.get(key)
    if value is None or not str(value).strip():
        raise ToolExecutionError(tool, f"Missing required argument '{key}'")
    return str(value)


def optional_str(arguments: Mapping[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if value is None or not str(value).strip():
        return None
    return str(value)


class ToolRegistry:
    """Closed name → tool table, fixed at construction."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                msg = f"Duplicate tool name: {tool.name}"
                raise ValueError(msg)
            self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def descriptors(self) -> list[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    async def invoke(self, name: str, arguments: dict[str, Any] | None) -> ToolInvocationResult:
        """Run a tool and wrap the outcome; tool failures become ``isError`` results."""
        with _tracer.start_as_current_span("mcp.server.tool") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            try:
                text = await self.get(name).run(arguments or {})
            except ToolExecutionError as exc:
                logger.debug("Tool %s failed: %s", name, exc)
                result = ToolInvocationResult.error(f"Error: {exc}")
            except ServerError as exc:
                logger.warning("Tool %s failed: %s", name, exc)
                result = ToolInvocationResult.error(str(exc))
            except Exception as exc:
                logger.exception("Tool %s crashed", name)
                result = ToolInvocationResult.error(f"Error: {type(exc).__name__}: {exc}")
            else:
                result = ToolInvocationResult.from_text(text)
            span.set_attribute(ATTR_TOOL_ERROR, result.is_error)
        return result
