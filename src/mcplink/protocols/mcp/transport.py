"""JSON-RPC over HTTP with endpoint probing.

:class:`JsonRpcTransport` sends one request to each candidate endpoint in
turn until one answers with a well-formed, non-error JSON-RPC response, then
decodes ``result`` according to the method that was called.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from mcplink.config import ClientSettings
from mcplink.protocols.errors import (
    CallFailedError,
    ConnectionFailedError,
    EndpointTimeoutError,
    EndpointUnreachableError,
    JsonRpcProtocolError,
    ProtocolError,
    ProtocolRejectedError,
    RequestTimeoutError,
)
from mcplink.protocols.mcp.endpoints import candidate_endpoints
from mcplink.protocols.mcp.models import (
    InitializeResult,
    JsonRpcRequest,
    ResourceContent,
    ResourcesList,
    ToolInvocationResult,
    ToolsList,
)
from mcplink.utils.telemetry import (
    ATTR_ATTEMPTS,
    ATTR_ENDPOINT,
    ATTR_METHOD,
    ATTR_REQUEST_ID,
    ATTR_SERVER_URL,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

SESSION_HEADER = "X-Session-Id"

RESULT_TYPES: dict[str, type[BaseModel]] = {
    "initialize": InitializeResult,
    "tools/list": ToolsList,
    "tools/call": ToolInvocationResult,
    "resources/list": ResourcesList,
    "resources/read": ResourceContent,
}


def decode_result(method: str, result: Any) -> Any:
    """Decode a raw ``result`` member using :data:`RESULT_TYPES`.

    Unknown methods return the raw JSON value unchanged.
    """
    model = RESULT_TYPES.get(method)
    if model is None:
        logger.debug("No result type registered for %s, returning raw JSON", method)
        return result
    return model.model_validate(result)


@dataclass(frozen=True)
class TransportReply:
    """A decoded result plus what the winning endpoint told us."""

    result: Any
    endpoint: str
    session_id: str | None = None


class JsonRpcTransport:
    """Sends JSON-RPC requests to a server whose endpoint path is unknown.

    The transport is stateless apart from the optional remembered endpoint;
    session ids are owned by the caller and passed in per request.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        server_url: str,
        settings: ClientSettings | None = None,
    ) -> None:
        self._http = http
        self._server_url = server_url
        self._settings = settings or ClientSettings()
        self._endpoints = candidate_endpoints(server_url)
        self._preferred: str | None = None
        self._timeout = httpx.Timeout(
            self._settings.request_timeout,
            connect=self._settings.connect_timeout,
        )

    @property
    def endpoints(self) -> list[str]:
        """Candidate endpoints in the order they will be tried."""
        if self._preferred is None:
            return list(self._endpoints)
        return [self._preferred, *(e for e in self._endpoints if e != self._preferred)]

    @property
    def preferred_endpoint(self) -> str | None:
        return self._preferred

    async def send(self, request: JsonRpcRequest, session_id: str | None = None) -> TransportReply:
        """Send *request*, probing candidates until one succeeds.

        Raises:
            ProtocolRejectedError: Some endpoint was reached but every reachable
                one answered with a JSON-RPC error or a malformed body.
            RequestTimeoutError: Every candidate timed out.
            ConnectionFailedError: No candidate was reachable.
        """
        body = json.dumps(request.model_dump(exclude_none=True))
        endpoints = self.endpoints
        failures: list[ProtocolError] = []

        with _tracer.start_as_current_span("mcp.client.call") as span:
            span.set_attribute(ATTR_SERVER_URL, self._server_url)
            span.set_attribute(ATTR_METHOD, request.method)
            span.set_attribute(ATTR_REQUEST_ID, request.id)

            logger.debug(
                "Sending %s (id=%s) to %s, %d candidate endpoint(s)",
                request.method,
                request.id,
                self._server_url,
                len(endpoints),
            )
            for endpoint in endpoints:
                try:
                    reply = await self._attempt(endpoint, request, body, session_id)
                except ProtocolError as exc:
                    logger.debug("Endpoint %s failed: %s", endpoint, exc)
                    failures.append(exc)
                    continue

                span.set_attribute(ATTR_ENDPOINT, endpoint)
                span.set_attribute(ATTR_ATTEMPTS, len(failures) + 1)
                if self._settings.cache_endpoint:
                    self._preferred = endpoint
                logger.debug("%s succeeded via %s", request.method, endpoint)
                return reply

            span.set_attribute(ATTR_ATTEMPTS, len(failures))

        error = self._classify(failures)
        logger.warning("All endpoint variants failed for %s: %s", self._server_url, error)
        raise error

    async def _attempt(
        self,
        endpoint: str,
        request: JsonRpcRequest,
        body: str,
        session_id: str | None,
    ) -> TransportReply:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self._settings.user_agent,
        }
        if session_id:
            headers[SESSION_HEADER] = session_id

        try:
            response = await self._http.post(
                endpoint, content=body, headers=headers, timeout=self._timeout
            )
        except httpx.TimeoutException as exc:
            raise EndpointTimeoutError(endpoint, str(exc) or type(exc).__name__) from exc
        except httpx.HTTPError as exc:
            raise EndpointUnreachableError(endpoint, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise EndpointUnreachableError(endpoint, f"HTTP {response.status_code}")

        text = response.text
        if not text.strip():
            raise JsonRpcProtocolError(endpoint, "empty response body")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise JsonRpcProtocolError(endpoint, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise JsonRpcProtocolError(endpoint, "response is not a JSON object")

        error = payload.get("error")
        if error is not None:
            message = "Unknown error"
            code: int | None = None
            if isinstance(error, dict):
                message = str(error.get("message", message))
                raw_code = error.get("code")
                code = raw_code if isinstance(raw_code, int) else None
            raise JsonRpcProtocolError(endpoint, message, code=code)

        if payload.get("result") is None:
            raise JsonRpcProtocolError(endpoint, "response has no result member")

        try:
            result = decode_result(request.method, payload["result"])
        except ValidationError as exc:
            raise JsonRpcProtocolError(
                endpoint, f"cannot decode {request.method} result: {exc.error_count()} error(s)"
            ) from exc

        return TransportReply(
            result=result,
            endpoint=endpoint,
            session_id=response.headers.get(SESSION_HEADER),
        )

    def _classify(self, failures: list[ProtocolError]) -> CallFailedError:
        if any(isinstance(f, JsonRpcProtocolError) for f in failures):
            return ProtocolRejectedError(self._server_url, failures)
        if failures and all(isinstance(f, EndpointTimeoutError) for f in failures):
            return RequestTimeoutError(self._server_url, failures)
        return ConnectionFailedError(self._server_url, failures)
