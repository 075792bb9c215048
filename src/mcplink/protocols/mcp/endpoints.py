"""Endpoint resolution for loosely specified MCP servers.

Real servers disagree on the path that accepts JSON-RPC posts, so the client
probes an ordered list of candidates derived from the configured base URL.
"""

from __future__ import annotations

KNOWN_SUFFIXES = ("/message", "/sse", "/mcp")

CANDIDATE_PATHS = (
    "/message",
    "/mcp/message",
    "/mcp",
    "",
    "/api/mcp",
    "/v1/mcp",
)


def normalize_url(url: str) -> str:
    """Strip surrounding whitespace and trailing slashes."""
    return url.strip().rstrip("/")


def candidate_endpoints(base_url: str) -> list[str]:
    """Return the ordered, de-duplicated endpoints to try for a JSON-RPC call.

    A URL already ending in a known suffix is tried first as-is, followed by
    every entry of :data:`CANDIDATE_PATHS` appended to it.
    """
    base = normalize_url(base_url)
    endpoints: list[str] = []
    if base.endswith(KNOWN_SUFFIXES):
        endpoints.append(base)
    endpoints.extend(base + path for path in CANDIDATE_PATHS)
    return list(dict.fromkeys(endpoints))


def _replace_suffix(base: str, suffix: str, replacement: str) -> str:
    return base[: -len(suffix)] + replacement


def sse_endpoint(base_url: str) -> str:
    """Derive the Server-Sent-Events endpoint."""
    base = normalize_url(base_url)
    if base.endswith("/sse"):
        return base
    if base.endswith("/message"):
        return _replace_suffix(base, "/message", "/sse")
    return base + "/sse"


def health_endpoint(base_url: str) -> str:
    """Derive the health-check endpoint."""
    base = normalize_url(base_url)
    for suffix in ("/message", "/sse"):
        if base.endswith(suffix):
            return _replace_suffix(base, suffix, "/health")
    return base + "/health"
