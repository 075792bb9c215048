"""FastAPI application factory for the MCP tool server."""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from mcplink.config import ServerSettings
from mcplink.protocols.mcp.transport import SESSION_HEADER
from mcplink.server.dispatcher import MethodDispatcher
from mcplink.server.errors import PARSE_ERROR
from mcplink.server.resources import ResourceCatalog, default_resources
from mcplink.server.tools import build_registry
from mcplink.server.tools.storage import now_ms

logger = logging.getLogger(__name__)

RPC_PATHS = ("/mcp", "/mcp/message", "/message")


def build_dispatcher(settings: ServerSettings) -> MethodDispatcher:
    """Construct the stores, tool registry and resource catalog once."""
    return MethodDispatcher(
        build_registry(settings),
        ResourceCatalog(default_resources(settings.name, settings.version)),
        server_name=settings.name,
        server_version=settings.version,
    )


def _overview(settings: ServerSettings, tools: list[str]) -> str:
    return "\n".join([
        f"{settings.name} {settings.version} is running!",
        "",
        "Endpoints:",
        "- POST /mcp - MCP protocol endpoint (JSON-RPC 2.0)",
        "- GET /mcp - Information about the endpoint",
        "- POST /mcp/message - Alternative endpoint",
        "- POST /message - Alternative endpoint",
        "- GET /health - Health check",
        "",
        f"Tools: {', '.join(tools)}",
        "",
        "Example:",
        f"  curl -X POST http://localhost:{settings.port}/mcp \\",
        '    -H "Content-Type: application/json" \\',
        """    -d '{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}'""",
    ])


def create_app(
    settings: ServerSettings | None = None,
    dispatcher: MethodDispatcher | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Server settings; defaults are used when omitted.
        dispatcher: Pre-built dispatcher, mainly for tests.  Built from
            *settings* when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or ServerSettings()
    dispatcher = dispatcher or build_dispatcher(settings)

    app = FastAPI(title=settings.name, version=settings.version)
    app.state.settings = settings
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", SESSION_HEADER],
        expose_headers=[SESSION_HEADER],
    )

    async def handle_rpc(request: Request) -> JSONResponse:
        session_id = request.headers.get(SESSION_HEADER) or f"session_{now_ms()}"
        body = await request.body()
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Unparseable request body: %s", exc)
            return JSONResponse(
                status_code=400,
                content={
                    "jsonrpc": "2.0",
                    "error": {"code": PARSE_ERROR, "message": f"Parse error: {exc}"},
                    "id": None,
                },
            )
        response = await dispatcher.handle(payload)
        return JSONResponse(content=response.to_wire(), headers={SESSION_HEADER: session_id})

    async def describe_rpc() -> PlainTextResponse:
        methods = "\n".join(f"- {m}" for m in dispatcher.methods)
        return PlainTextResponse(
            f"MCP Server endpoint\n\nSupported methods:\n{methods}\n\n"
            "Use POST method to interact with the server."
        )

    for path in RPC_PATHS:
        app.add_api_route(path, handle_rpc, methods=["POST"])
        app.add_api_route(path, describe_rpc, methods=["GET"], response_class=PlainTextResponse)

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        return "OK"

    @app.get("/", response_class=PlainTextResponse)
    async def overview() -> str:
        return _overview(settings, dispatcher.registry.names)

    return app
