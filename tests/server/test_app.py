"""Tests for the FastAPI application."""

from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient

from mcplink.config import ServerSettings
from mcplink.server.app import create_app


@pytest.fixture
def client(server_settings: ServerSettings) -> TestClient:
    return TestClient(create_app(server_settings))


class TestRpcRoutes:
    @pytest.mark.parametrize("path", ["/mcp", "/mcp/message", "/message"])
    def test_post_dispatches(self, client: TestClient, path: str) -> None:
        response = client.post(path, json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"})

        assert response.status_code == 200
        assert len(response.json()["result"]["tools"]) == 6

    def test_session_header_echoed(self, client: TestClient) -> None:
        response = client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 1, "method": "initialize"},
            headers={"X-Session-Id": "abc"},
        )
        assert response.headers["X-Session-Id"] == "abc"

    def test_session_header_generated(self, client: TestClient) -> None:
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "initialize"})
        assert re.fullmatch(r"session_\d+", response.headers["X-Session-Id"])

    def test_parse_error(self, client: TestClient) -> None:
        response = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        body = response.json()
        assert body["id"] is None
        assert body["error"]["code"] == -32700
        assert body["error"]["message"].startswith("Parse error")

    def test_unknown_method_is_http_200(self, client: TestClient) -> None:
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "nope"})

        assert response.status_code == 200
        assert response.json() == {
            "jsonrpc": "2.0",
            "id": 2,
            "error": {"code": -32601, "message": "Method not found: nope"},
        }

    def test_tool_call_persists_reminder(self, client: TestClient, server_settings: ServerSettings) -> None:
        response = client.post(
            "/mcp",
            json={
                "jsonrpc": "2.0",
                "id": 3,
                "method": "tools/call",
                "params": {"name": "reminder", "arguments": {"action": "create", "title": "Water plants"}},
            },
        )

        assert response.json()["result"]["isError"] is False
        assert "Water plants" in server_settings.reminders_path.read_text()

    @pytest.mark.parametrize(
        "arguments",
        [
            {"action": "save", "title": "t", "content": "c", "metadata": ["a"]},
            {"action": "save", "title": "t", "content": "c", "tags": 5},
            {"action": "list", "limit": "abc"},
        ],
    )
    def test_malformed_tool_arguments_are_error_results(self, client: TestClient, arguments: dict) -> None:
        response = client.post(
            "/mcp",
            json={
                "jsonrpc": "2.0",
                "id": 4,
                "method": "tools/call",
                "params": {"name": "save_info", "arguments": arguments},
            },
        )

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("Error: ")

    def test_out_of_range_due_date_leaves_reminders_readable(self, client: TestClient) -> None:
        def call(arguments: dict) -> dict:
            response = client.post(
                "/mcp",
                json={
                    "jsonrpc": "2.0",
                    "id": 5,
                    "method": "tools/call",
                    "params": {"name": "reminder", "arguments": arguments},
                },
            )
            assert response.status_code == 200
            return response.json()["result"]

        created = call({"action": "create", "title": "far", "due_date": 10**17})
        assert created["isError"] is True
        assert "out of range" in created["content"][0]["text"]

        for action in ("list", "get_due", "get_summary"):
            assert call({"action": action})["isError"] is False

    @pytest.mark.parametrize("path", ["/mcp", "/mcp/message", "/message"])
    def test_get_describes_endpoint(self, client: TestClient, path: str) -> None:
        response = client.get(path)
        assert response.status_code == 200
        assert "tools/call" in response.text
        assert "POST" in response.text


class TestInfoRoutes:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "OK"

    def test_overview(self, client: TestClient) -> None:
        response = client.get("/")
        assert "POST /mcp" in response.text
        assert "save_info" in response.text

    def test_no_sse_route(self, client: TestClient) -> None:
        assert client.get("/mcp/sse").status_code == 404


class TestCors:
    def test_preflight(self, client: TestClient) -> None:
        response = client.options(
            "/mcp",
            headers={
                "Origin": "http://example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-Session-Id",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
