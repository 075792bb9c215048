"""``mcplink serve`` — run the bundled MCP tool server."""

from __future__ import annotations

from pathlib import Path

import click

from mcplink.cli_commands._output import console
from mcplink.config import MCPLinkConfig


@click.command()
@click.option("--host", default=None, help="Bind address (default from config).")
@click.option("--port", type=int, default=None, help="Port (default from config).")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the reminder and information stores.",
)
@click.pass_obj
def serve(config: MCPLinkConfig, host: str | None, port: int | None, data_dir: Path | None) -> None:
    """Serve MCP over HTTP at /mcp, /mcp/message and /message."""
    import uvicorn

    from mcplink.server.app import create_app

    updates = {k: v for k, v in {"host": host, "port": port, "data_dir": data_dir}.items() if v is not None}
    settings = config.server.model_copy(update=updates)

    console.print(f"[green]Starting {settings.name}[/green] on http://{settings.host}:{settings.port}/mcp")
    console.print(f"  Data dir: {settings.data_dir.resolve()}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="info")
