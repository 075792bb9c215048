"""Shared CLI output formatters."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mcplink.protocols.mcp.models import (  # noqa: TC001
    Notification,
    ResourceContent,
    ResourceDescriptor,
    ToolDescriptor,
    ToolInvocationResult,
)

console = Console()


def print_connection_results(results: dict[str, bool]) -> None:
    for name, ok in results.items():
        status = "[green]connected[/green]" if ok else "[red]failed[/red]"
        console.print(f"  {name}: {status}")


def print_tools_table(catalog: dict[str, list[ToolDescriptor]]) -> None:
    """Pretty-print every server's tools as one table."""
    table = Table(title="Discovered Tools")
    table.add_column("Server", style="magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Description")

    for server, tools in catalog.items():
        for tool in tools:
            table.add_row(server, escape(tool.name), escape(_truncate(tool.description or "")))

    console.print(table)


def print_resources_table(resources: list[ResourceDescriptor]) -> None:
    table = Table(title="Resources")
    table.add_column("URI", style="cyan")
    table.add_column("Name")
    table.add_column("MIME type")
    table.add_column("Description")

    for resource in resources:
        table.add_row(
            escape(resource.uri),
            escape(resource.name),
            resource.mime_type or "-",
            escape(_truncate(resource.description or "")),
        )

    console.print(table)


def print_tool_result(result: ToolInvocationResult) -> None:
    style = "red" if result.is_error else "green"
    console.print(Panel(Text(result.text or "(no text content)"), border_style=style))


def print_resource(content: ResourceContent) -> None:
    console.print(f"[bold]{escape(content.uri)}[/bold] ({content.mime_type or 'unknown'})")
    if content.mime_type == "application/json" and content.text:
        console.print_json(content.text)
    else:
        console.print(content.text if content.text is not None else content.blob or "", markup=False)


def print_notification(notification: Notification) -> None:
    method = notification.method or "(no method)"
    console.print(f"[cyan]{escape(method)}[/cyan] {escape(str(notification.params or {}))}")


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
