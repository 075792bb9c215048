"""``mcplink tools`` — discover and invoke tools on MCP servers."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any

import click

from mcplink.cli_commands._output import (
    console,
    print_connection_results,
    print_tool_result,
    print_tools_table,
)
from mcplink.config import MCPLinkConfig


@click.group()
def tools() -> None:
    """Discover and invoke tools."""


@tools.command("list")
@click.argument("servers", nargs=-1)
@click.pass_obj
def list_tools(config: MCPLinkConfig, servers: tuple[str, ...]) -> None:
    """List tools of every SERVER.

    Each SERVER is ``name:url`` or a bare URL.  Servers from the config file
    are used when none are given.
    """
    from mcplink.protocols.mcp.manager import ConnectionManager

    entries = list(servers) or config.servers
    if not entries:
        console.print("[red]No servers given.[/red]")
        sys.exit(1)

    async def _list() -> tuple[dict[str, bool], dict[str, Any]]:
        async with ConnectionManager(settings=config.client) as manager:
            results = await manager.connect_servers_from_list(entries)
            return results, await manager.list_all_tools()

    results, catalog = asyncio.run(_list())
    print_connection_results(results)
    if not any(catalog.values()):
        console.print("[yellow]No tools discovered.[/yellow]")
        return
    print_tools_table(catalog)


@tools.command("call")
@click.argument("server")
@click.argument("tool")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object.")
@click.pass_obj
def call_tool(config: MCPLinkConfig, server: str, tool: str, args_json: str) -> None:
    """Invoke TOOL on SERVER (``name:url`` or URL)."""
    from mcplink.protocols.mcp.connection import MCPConnection
    from mcplink.protocols.mcp.manager import parse_server_entry

    try:
        arguments = json.loads(args_json)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid --args JSON:[/red] {exc}")
        sys.exit(1)
    if not isinstance(arguments, dict):
        console.print("[red]--args must be a JSON object.[/red]")
        sys.exit(1)

    _, url = parse_server_entry(server)

    async def _call() -> Any:
        async with MCPConnection(url, settings=config.client) as connection:
            if not connection.connected:
                return None
            return await connection.call_tool(tool, arguments)

    result = asyncio.run(_call())
    if result is None:
        console.print(f"[red]Call to {tool} on {url} failed.[/red]")
        sys.exit(1)
    print_tool_result(result)
    if result.is_error:
        sys.exit(2)
