"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from mcplink.cli_commands.agent import agent
    from mcplink.cli_commands.resources import resources
    from mcplink.cli_commands.serve import serve
    from mcplink.cli_commands.tools import tools
    from mcplink.cli_commands.watch import watch

    cli.add_command(serve)
    cli.add_command(tools)
    cli.add_command(resources)
    cli.add_command(watch)
    cli.add_command(agent)
