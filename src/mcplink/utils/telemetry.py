"""Tracing for client calls and server tool runs.

Only ``opentelemetry-api`` is a hard dependency: until :func:`configure_telemetry`
installs an SDK provider, every tracer handed out by :func:`get_tracer` records
nothing.  The span names in use are ``mcp.client.call`` (one per JSON-RPC call,
across all probed endpoints) and ``mcp.server.tool`` (one per tool invocation).
"""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace

logger = logging.getLogger(__name__)

ATTR_SERVER_URL = "mcp.server.url"
ATTR_METHOD = "mcp.method"
ATTR_REQUEST_ID = "mcp.request.id"
ATTR_ENDPOINT = "mcp.endpoint"
ATTR_ATTEMPTS = "mcp.attempts"
ATTR_TOOL_NAME = "mcp.tool.name"
ATTR_TOOL_ERROR = "mcp.tool.is_error"

_INSTRUMENTATION_NAME = "mcplink"

_SDK_HINT = "Install the tracing extra: pip install mcplink[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def _span_exporters(console: bool, otlp_endpoint: str | None) -> list[tuple[Any, bool]]:
    """``(exporter, batched)`` pairs for the requested sinks."""
    exporters: list[tuple[Any, bool]] = []
    if console:
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter  # pyright: ignore[reportMissingImports]

        exporters.append((ConsoleSpanExporter(), False))
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
                OTLPSpanExporter,
            )
        except ImportError as exc:
            raise ImportError(f"OTLP export needs opentelemetry-exporter-otlp. {_SDK_HINT}") from exc
        exporters.append((OTLPSpanExporter(endpoint=otlp_endpoint), True))
    return exporters


def configure_telemetry(
    *,
    service_name: str = "mcplink",
    console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider exporting to stdout and/or OTLP/gRPC.

    Raises:
        ImportError: If ``opentelemetry-sdk`` (or, for *otlp_endpoint*, the
            OTLP exporter) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        raise ImportError(f"configure_telemetry() needs opentelemetry-sdk. {_SDK_HINT}") from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for exporter, batched in _span_exporters(console, otlp_endpoint):
        processor = BatchSpanProcessor if batched else SimpleSpanProcessor
        provider.add_span_processor(processor(exporter))
    trace.set_tracer_provider(provider)
    logger.debug("Tracing enabled for %s", service_name)
