"""mcplink CLI entrypoint."""

from __future__ import annotations

import logging
import sys

import click
from rich.logging import RichHandler

from mcplink import __version__
from mcplink.config import ConfigError, load_config


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="mcplink")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--trace", is_flag=True, help="Print OpenTelemetry spans to stdout (needs mcplink[otel]).")
@click.option("--otlp-endpoint", default=None, help="Export spans to this OTLP/gRPC collector.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    verbose: bool,
    trace: bool,
    otlp_endpoint: str | None,
) -> None:
    """mcplink: MCP client engine and tool server."""
    _configure_logging(verbose)
    if trace or otlp_endpoint:
        from mcplink.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(console=trace, otlp_endpoint=otlp_endpoint)
        except ImportError as exc:
            click.echo(str(exc), err=True)
            sys.exit(1)
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)


# Register subcommands
from mcplink.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
