"""Tests for endpoint resolution."""

import pytest

from mcplink.protocols.mcp.endpoints import candidate_endpoints, health_endpoint, sse_endpoint


class TestCandidateEndpoints:
    def test_plain_base_yields_six_candidates(self) -> None:
        assert candidate_endpoints("http://h:8080") == [
            "http://h:8080/message",
            "http://h:8080/mcp/message",
            "http://h:8080/mcp",
            "http://h:8080",
            "http://h:8080/api/mcp",
            "http://h:8080/v1/mcp",
        ]

    def test_trailing_slashes_stripped(self) -> None:
        assert candidate_endpoints("http://h:8080///") == candidate_endpoints("http://h:8080")

    def test_suffixed_url_tried_first(self) -> None:
        endpoints = candidate_endpoints("http://h/mcp")
        assert endpoints[0] == "http://h/mcp"
        assert "http://h/mcp/message" in endpoints
        assert "http://h/mcp/mcp" in endpoints

    @pytest.mark.parametrize(
        "url", ["http://h", "http://h/mcp", "http://h/message", "http://h/sse", "http://h/api/"]
    )
    def test_no_duplicates(self, url: str) -> None:
        endpoints = candidate_endpoints(url)
        assert len(endpoints) == len(set(endpoints))

    def test_bare_base_appears_once(self) -> None:
        # "" appended to a suffixed base reproduces the base itself.
        endpoints = candidate_endpoints("http://h/message")
        assert endpoints.count("http://h/message") == 1


class TestSseEndpoint:
    def test_unchanged_when_sse(self) -> None:
        assert sse_endpoint("http://h/sse") == "http://h/sse"

    def test_message_replaced(self) -> None:
        assert sse_endpoint("http://h/message") == "http://h/sse"

    def test_appended_otherwise(self) -> None:
        assert sse_endpoint("http://h/mcp/") == "http://h/mcp/sse"


class TestHealthEndpoint:
    def test_message_replaced(self) -> None:
        assert health_endpoint("http://h/mcp/message") == "http://h/mcp/health"

    def test_sse_replaced(self) -> None:
        assert health_endpoint("http://h/sse") == "http://h/health"

    def test_appended_otherwise(self) -> None:
        assert health_endpoint("http://h/mcp") == "http://h/mcp/health"
