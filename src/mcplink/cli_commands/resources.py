"""``mcplink resources`` — list and read server resources."""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import click

from mcplink.cli_commands._output import console, print_resource, print_resources_table
from mcplink.config import MCPLinkConfig


@click.group()
def resources() -> None:
    """List and read resources."""


async def _with_connection(config: MCPLinkConfig, server: str, action: Any) -> Any:
    from mcplink.protocols.mcp.connection import MCPConnection
    from mcplink.protocols.mcp.manager import parse_server_entry

    _, url = parse_server_entry(server)
    async with MCPConnection(url, settings=config.client) as connection:
        if not connection.connected:
            console.print(f"[red]Cannot connect to {url}.[/red]")
            return None
        return await action(connection)


@resources.command("list")
@click.argument("server")
@click.pass_obj
def list_resources(config: MCPLinkConfig, server: str) -> None:
    """List the resources SERVER offers."""
    listing = asyncio.run(_with_connection(config, server, lambda c: c.list_resources()))
    if listing is None:
        sys.exit(1)
    if not listing:
        console.print("[yellow]No resources.[/yellow]")
        return
    print_resources_table(listing)


@resources.command("read")
@click.argument("server")
@click.argument("uri")
@click.pass_obj
def read_resource(config: MCPLinkConfig, server: str, uri: str) -> None:
    """Read resource URI from SERVER."""
    content = asyncio.run(_with_connection(config, server, lambda c: c.get_resource(uri)))
    if content is None:
        console.print(f"[red]Cannot read {uri}.[/red]")
        sys.exit(1)
    print_resource(content)
