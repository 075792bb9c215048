"""Shared error types for the client protocol layer.

Per-endpoint errors (:class:`EndpointUnreachableError`,
:class:`JsonRpcProtocolError`) are recovered inside the transport by moving on
to the next candidate endpoint.  The exhaustion errors are what
:meth:`MCPConnection.request` raises; the rest of the public API collapses
them to ``None``.
"""

from __future__ import annotations

from collections.abc import Sequence


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class EndpointUnreachableError(ProtocolError):
    """Network or HTTP-status failure on a single candidate endpoint."""

    def __init__(self, endpoint: str, detail: str = "") -> None:
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"Endpoint unreachable: {endpoint}" + (f" ({detail})" if detail else ""))


class EndpointTimeoutError(EndpointUnreachableError):
    """A single candidate endpoint did not answer within the timeout."""


class JsonRpcProtocolError(ProtocolError):
    """A reachable endpoint answered with a JSON-RPC error or malformed JSON."""

    def __init__(self, endpoint: str, detail: str = "", code: int | None = None) -> None:
        self.endpoint = endpoint
        self.detail = detail
        self.code = code
        msg = f"Protocol error from {endpoint}"
        if code is not None:
            msg += f" [{code}]"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class CallFailedError(ProtocolError):
    """Every candidate endpoint failed for one JSON-RPC call."""

    _summary = "Call failed"

    def __init__(self, url: str, failures: Sequence[ProtocolError] = ()) -> None:
        self.url = url
        self.failures = list(failures)
        super().__init__(f"{self._summary} for {url} after {len(self.failures)} attempt(s)")


class ConnectionFailedError(CallFailedError):
    """No candidate endpoint was reachable."""

    _summary = "No endpoint reachable"


class RequestTimeoutError(CallFailedError):
    """Every candidate endpoint timed out."""

    _summary = "Request timed out"


class ProtocolRejectedError(CallFailedError):
    """Every reachable endpoint answered with a JSON-RPC error or malformed body."""

    _summary = "Every reachable endpoint rejected the call"

    @property
    def last_error(self) -> JsonRpcProtocolError | None:
        """The most recent protocol-level rejection, if any."""
        for failure in reversed(self.failures):
            if isinstance(failure, JsonRpcProtocolError):
                return failure
        return None
