"""Tests for the ``mcplink`` CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner

from mcplink.cli import main
from mcplink.protocols.mcp.models import (
    ResourceContent,
    ResourceDescriptor,
    ToolDescriptor,
    ToolInvocationResult,
)

if TYPE_CHECKING:
    from pathlib import Path


def _mock_connection(connected: bool = True) -> MagicMock:
    conn = MagicMock()
    conn.connected = connected
    conn.session_id = "session_1"
    conn.server_url = "http://localhost:8080/mcp"
    conn.__aenter__ = AsyncMock(return_value=conn)
    conn.__aexit__ = AsyncMock(return_value=None)
    return conn


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_bad_config(self, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("- just\n- a list\n")

        result = CliRunner().invoke(main, ["--config", str(config), "tools", "list", "x:http://h"])

        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_trace_configures_telemetry(self) -> None:
        with patch("mcplink.utils.telemetry.configure_telemetry") as configure:
            result = CliRunner().invoke(main, ["--trace", "tools", "list"])

        configure.assert_called_once_with(console=True, otlp_endpoint=None)
        assert "No servers given" in result.output

    def test_trace_without_sdk(self) -> None:
        with patch(
            "mcplink.utils.telemetry.configure_telemetry",
            side_effect=ImportError("pip install mcplink[otel]"),
        ):
            result = CliRunner().invoke(main, ["--trace", "tools", "list"])

        assert result.exit_code == 1
        assert "mcplink[otel]" in result.output


class TestToolsCommands:
    def test_list(self) -> None:
        manager = MagicMock()
        manager.__aenter__ = AsyncMock(return_value=manager)
        manager.__aexit__ = AsyncMock(return_value=None)
        manager.connect_servers_from_list = AsyncMock(return_value={"local": True, "remote": False})
        manager.list_all_tools = AsyncMock(
            return_value={"local": [ToolDescriptor(name="echo", description="Echoes back the input text")]}
        )

        with patch("mcplink.protocols.mcp.manager.ConnectionManager", return_value=manager):
            result = CliRunner().invoke(main, ["tools", "list", "local:http://localhost:8080/mcp", "remote:http://x"])

        assert result.exit_code == 0
        assert "echo" in result.output
        assert "failed" in result.output

    def test_list_needs_servers(self) -> None:
        result = CliRunner().invoke(main, ["tools", "list"])
        assert result.exit_code == 1
        assert "No servers given" in result.output

    def test_list_uses_config_servers(self, tmp_path: Path) -> None:
        config = tmp_path / "mcplink.yaml"
        config.write_text("servers:\n  - local:http://localhost:8080/mcp\n")
        manager = MagicMock()
        manager.__aenter__ = AsyncMock(return_value=manager)
        manager.__aexit__ = AsyncMock(return_value=None)
        manager.connect_servers_from_list = AsyncMock(return_value={"local": True})
        manager.list_all_tools = AsyncMock(return_value={"local": []})

        with patch("mcplink.protocols.mcp.manager.ConnectionManager", return_value=manager):
            result = CliRunner().invoke(main, ["--config", str(config), "tools", "list"])

        assert result.exit_code == 0
        manager.connect_servers_from_list.assert_awaited_once_with(["local:http://localhost:8080/mcp"])
        assert "No tools discovered" in result.output

    def test_call(self) -> None:
        conn = _mock_connection()
        conn.call_tool = AsyncMock(return_value=ToolInvocationResult.from_text("Result: 5.0"))

        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(
                main, ["tools", "call", "http://localhost:8080/mcp", "calculate", "--args", '{"expression": "2+3"}']
            )

        assert result.exit_code == 0
        assert "Result: 5.0" in result.output
        conn.call_tool.assert_awaited_once_with("calculate", {"expression": "2+3"})

    def test_call_error_result_exit_code(self) -> None:
        conn = _mock_connection()
        conn.call_tool = AsyncMock(return_value=ToolInvocationResult.error("Unknown tool: nope"))

        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["tools", "call", "http://localhost:8080/mcp", "nope"])

        assert result.exit_code == 2
        assert "Unknown tool: nope" in result.output

    def test_call_invalid_args(self) -> None:
        result = CliRunner().invoke(main, ["tools", "call", "http://h/mcp", "echo", "--args", "[1]"])
        assert result.exit_code == 1
        assert "JSON object" in result.output

    def test_call_connection_failure(self) -> None:
        conn = _mock_connection(connected=False)
        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["tools", "call", "http://h/mcp", "echo"])
        assert result.exit_code == 1
        assert "failed" in result.output


class TestResourcesCommands:
    def test_list(self) -> None:
        conn = _mock_connection()
        conn.list_resources = AsyncMock(
            return_value=[ResourceDescriptor(uri="file:///example.txt", name="Example", mime_type="text/plain")]
        )
        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["resources", "list", "http://h/mcp"])

        assert result.exit_code == 0
        assert "file:///example.txt" in result.output

    def test_read(self) -> None:
        conn = _mock_connection()
        conn.get_resource = AsyncMock(
            return_value=ResourceContent(uri="file:///example.txt", mime_type="text/plain", text="hello world")
        )
        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["resources", "read", "http://h/mcp", "file:///example.txt"])

        assert result.exit_code == 0
        assert "hello world" in result.output

    def test_read_failure(self) -> None:
        conn = _mock_connection()
        conn.get_resource = AsyncMock(return_value=None)
        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["resources", "read", "http://h/mcp", "file:///nope"])
        assert result.exit_code == 1


class TestServe:
    def test_runs_uvicorn_with_overrides(self, tmp_path: Path) -> None:
        with patch("uvicorn.run") as run:
            result = CliRunner().invoke(main, ["serve", "--port", "9999", "--data-dir", str(tmp_path)])

        assert result.exit_code == 0
        run.assert_called_once()
        assert run.call_args.kwargs["port"] == 9999
        assert (tmp_path / "reminders.json").exists()


class TestAgentCommand:
    def test_once(self) -> None:
        conn = _mock_connection()

        async def call_tool(name: str, arguments: dict) -> ToolInvocationResult:
            if arguments["action"] == "get_due":
                return ToolInvocationResult.from_text("Due reminders:\n\n[r1] Stretch")
            return ToolInvocationResult.from_text("REMINDER SUMMARY\nTotal reminders: 1")

        conn.call_tool = AsyncMock(side_effect=call_tool)
        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["agent", "reminders", "--once"])

        assert result.exit_code == 0
        assert "Stretch" in result.output
        assert "Total reminders: 1" in result.output

    def test_connection_failure(self) -> None:
        conn = _mock_connection(connected=False)
        with patch("mcplink.protocols.mcp.connection.MCPConnection", return_value=conn):
            result = CliRunner().invoke(main, ["agent", "reminders", "--once", "--server-url", "http://h/mcp"])
        assert result.exit_code == 1
        assert "Cannot connect" in result.output
