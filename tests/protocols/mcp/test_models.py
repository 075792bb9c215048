"""Tests for MCP JSON-RPC models."""

import pytest
from pydantic import ValidationError

from mcplink.protocols.mcp.models import (
    InitializeParams,
    InitializeResult,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ResourceContent,
    ToolContent,
    ToolDescriptor,
    ToolInvocationResult,
)


class TestJsonRpcRequest:
    def test_defaults(self) -> None:
        req = JsonRpcRequest(id=1, method="tools/list")
        assert req.jsonrpc == "2.0"
        assert req.params is None

    def test_frozen(self) -> None:
        req = JsonRpcRequest(id=1, method="tools/list")
        with pytest.raises(ValidationError):
            req.method = "other"  # type: ignore[misc]

    def test_serialization_omits_missing_params(self) -> None:
        data = JsonRpcRequest(id=3, method="tools/list").model_dump(exclude_none=True)
        assert data == {"jsonrpc": "2.0", "id": 3, "method": "tools/list"}


class TestJsonRpcError:
    def test_basic(self) -> None:
        err = JsonRpcError(code=-32600, message="Invalid request")
        assert err.code == -32600
        assert err.data is None

    def test_with_data(self) -> None:
        err = JsonRpcError(code=-32601, message="Not found", data={"tool": "x"})
        assert err.data["tool"] == "x"


class TestJsonRpcResponse:
    def test_success(self) -> None:
        resp = JsonRpcResponse.success(1, {"tools": []})
        assert resp.error is None
        assert resp.to_wire() == {"jsonrpc": "2.0", "id": 1, "result": {"tools": []}}

    def test_failure(self) -> None:
        resp = JsonRpcResponse.failure(7, -32601, "Method not found: nope")
        wire = resp.to_wire()
        assert "result" not in wire
        assert wire["error"] == {"code": -32601, "message": "Method not found: nope"}

    def test_both_members_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse.model_validate(
                {"id": 1, "result": {}, "error": {"code": 1, "message": "x"}}
            )

    def test_neither_member_rejected(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse.model_validate({"jsonrpc": "2.0", "id": 1})

    def test_empty_object_result_is_present(self) -> None:
        resp = JsonRpcResponse.model_validate({"id": 1, "result": {}})
        assert resp.result == {}


class TestInitialize:
    def test_params_use_wire_names(self) -> None:
        params = InitializeParams(client_info={"name": "mcplink", "version": "0.1.0"})
        data = params.model_dump(by_alias=True)
        assert data["protocolVersion"] == "2024-11-05"
        assert data["capabilities"] == {}
        assert data["clientInfo"] == {"name": "mcplink", "version": "0.1.0"}

    def test_result_accepts_body_session_id(self) -> None:
        result = InitializeResult.model_validate(
            {"protocolVersion": "2024-11-05", "sessionId": "abc", "serverInfo": {"name": "s", "version": "1"}}
        )
        assert result.session_id == "abc"
        assert result.server_info is not None
        assert result.server_info.name == "s"

    def test_result_tolerates_minimal_body(self) -> None:
        result = InitializeResult.model_validate({})
        assert result.session_id is None
        assert result.capabilities is None


class TestToolModels:
    def test_descriptor_alias(self) -> None:
        tool = ToolDescriptor.model_validate(
            {"name": "echo", "inputSchema": {"type": "object", "properties": {"text": {"type": "string"}}}}
        )
        assert tool.input_schema is not None
        assert tool.input_schema["properties"]["text"]["type"] == "string"
        assert tool.description is None

    def test_result_text_is_first_text_item(self) -> None:
        result = ToolInvocationResult(
            content=[ToolContent(type="image"), ToolContent(text="first"), ToolContent(text="second")]
        )
        assert result.text == "first"

    def test_result_text_empty(self) -> None:
        assert ToolInvocationResult().text == ""

    def test_error_builder(self) -> None:
        result = ToolInvocationResult.error("Unknown tool: nope")
        data = result.model_dump(by_alias=True)
        assert data["isError"] is True
        assert data["content"] == [{"type": "text", "text": "Unknown tool: nope"}]

    def test_is_error_defaults_false(self) -> None:
        result = ToolInvocationResult.model_validate({"content": [{"type": "text", "text": "ok"}]})
        assert result.is_error is False


class TestResourceContent:
    def test_mime_type_alias(self) -> None:
        content = ResourceContent.model_validate(
            {"uri": "file:///x.json", "mimeType": "application/json", "text": "{}"}
        )
        assert content.mime_type == "application/json"
        assert content.blob is None
