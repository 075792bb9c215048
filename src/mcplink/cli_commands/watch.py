"""``mcplink watch`` — stream server notifications."""

from __future__ import annotations

import asyncio
import sys

import click

from mcplink.cli_commands._output import console, print_notification
from mcplink.config import MCPLinkConfig


@click.command()
@click.argument("server")
@click.option("--limit", type=int, default=None, help="Exit after this many notifications.")
@click.pass_obj
def watch(config: MCPLinkConfig, server: str, limit: int | None) -> None:
    """Print notifications pushed by SERVER over SSE until interrupted."""
    from mcplink.protocols.mcp.connection import MCPConnection
    from mcplink.protocols.mcp.manager import parse_server_entry

    _, url = parse_server_entry(server)
    settings = config.client.model_copy(update={"sse": config.client.sse.model_copy(update={"enabled": True})})

    async def _watch() -> bool:
        async with MCPConnection(url, settings=settings) as connection:
            if not connection.connected:
                return False
            console.print(f"[green]Connected[/green] to {url} (session {connection.session_id})")
            received = 0
            async with connection.subscribe() as subscription:
                async for notification in subscription:
                    print_notification(notification)
                    received += 1
                    if limit is not None and received >= limit:
                        break
            return True

    try:
        ok = asyncio.run(_watch())
    except KeyboardInterrupt:
        return
    if not ok:
        console.print(f"[red]Cannot connect to {url}.[/red]")
        sys.exit(1)
