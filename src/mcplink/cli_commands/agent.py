"""``mcplink agent`` — long-running MCP clients."""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime

import click
from rich.rule import Rule

from mcplink.cli_commands._output import console
from mcplink.config import MCPLinkConfig


@click.group()
def agent() -> None:
    """Run background agents."""


@agent.command("reminders")
@click.option("--server-url", default=None, help="MCP server URL (default from config).")
@click.option("--check-interval", type=float, default=None, help="Minutes between due checks.")
@click.option("--summary-interval", type=float, default=None, help="Hours between summaries.")
@click.option("--once", is_flag=True, help="Run one check plus a summary, then exit.")
@click.pass_obj
def reminders(
    config: MCPLinkConfig,
    server_url: str | None,
    check_interval: float | None,
    summary_interval: float | None,
    once: bool,
) -> None:
    """Poll the reminder tool and print due reminders and periodic summaries."""
    from mcplink.agents.reminders import AgentReport, ReminderAgent
    from mcplink.protocols.mcp.connection import MCPConnection

    url = server_url or config.agent.server_url
    check_minutes = check_interval if check_interval is not None else config.agent.check_interval_minutes
    summary_hours = summary_interval if summary_interval is not None else config.agent.summary_interval_hours

    def report(item: AgentReport) -> None:
        title = "DUE REMINDERS" if item.kind == "due" else "REMINDER SUMMARY"
        console.print(Rule(f"{title} · {datetime.now().isoformat(timespec='seconds')}"))
        console.print(item.text, markup=False)

    async def _run() -> bool:
        async with MCPConnection(url, settings=config.client) as connection:
            if not connection.connected:
                return False
            runner = ReminderAgent(
                connection,
                check_interval=check_minutes * 60,
                summary_interval=summary_hours * 3600,
                reporter=report,
            )
            if once:
                await runner.run_once(summary=True)
                return True
            runner.start()
            try:
                await runner.join()
            finally:
                await runner.stop()
            return True

    console.print(
        f"Reminder agent for [cyan]{url}[/cyan]: "
        f"check every {check_minutes} min, summary every {summary_hours} h"
    )
    try:
        ok = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Reminder agent stopped.")
        return
    if not ok:
        console.print(f"[red]Cannot connect to {url}.[/red]")
        sys.exit(1)
