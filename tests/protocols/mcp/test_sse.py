"""Tests for SSE framing, the notification broadcaster and the listener."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from mcplink.config import SSESettings
from mcplink.protocols.mcp.models import Notification
from mcplink.protocols.mcp.sse import (
    NotificationBroadcaster,
    SSEField,
    SSEListener,
    decode_notification,
    parse_sse_line,
)

SSE_URL = "http://mcp.test/sse"


def _event_stream(*notifications: dict) -> httpx.Response:
    lines = []
    for note in notifications:
        lines.append("event: message")
        lines.append(f"data: {json.dumps(note)}")
        lines.append("")
    return httpx.Response(
        200,
        content="\n".join(lines).encode(),
        headers={"Content-Type": "text/event-stream"},
    )


def _listener(
    handler: Callable[[httpx.Request], httpx.Response],
    broadcaster: NotificationBroadcaster,
    settings: SSESettings | None = None,
    session_id: str | None = None,
) -> SSEListener:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SSEListener(
        http,
        SSE_URL,
        broadcaster,
        session_id=lambda: session_id,
        settings=settings or SSESettings(initial_backoff=0.0, jitter=False, max_retries=0),
    )


async def _wait_stopped(listener: SSEListener, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while listener.running:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


class TestParseSseLine:
    def test_blank_is_boundary(self) -> None:
        assert parse_sse_line("") is None
        assert parse_sse_line("   ") is None

    def test_data_with_space(self) -> None:
        assert parse_sse_line('data: {"a":1}') == SSEField("data", '{"a":1}')

    def test_data_without_space(self) -> None:
        assert parse_sse_line("data:{}") == SSEField("data", "{}")

    @pytest.mark.parametrize("name", ["event", "id", "retry"])
    def test_informational_fields(self, name: str) -> None:
        assert parse_sse_line(f"{name}: 42") == SSEField(name, "42")  # type: ignore[arg-type]

    def test_unprefixed_is_raw_data(self) -> None:
        assert parse_sse_line('{"method":"x"}') == SSEField("data", '{"method":"x"}')


class TestDecodeNotification:
    def test_valid(self) -> None:
        note = decode_notification('{"jsonrpc":"2.0","method":"notifications/message","params":{"x":1}}')
        assert note is not None
        assert note.method == "notifications/message"
        assert note.params == {"x": 1}

    def test_invalid_json(self) -> None:
        assert decode_notification("not json") is None

    def test_wrong_shape(self) -> None:
        assert decode_notification('{"params": "not-an-object"}') is None


class TestNotificationBroadcaster:
    async def test_every_subscriber_receives(self) -> None:
        broadcaster = NotificationBroadcaster()
        first = broadcaster.subscribe()
        second = broadcaster.subscribe()

        broadcaster.publish(Notification(method="a"))

        assert (await first.get()).method == "a"
        assert (await second.get()).method == "a"

    async def test_no_replay_for_late_subscribers(self) -> None:
        broadcaster = NotificationBroadcaster()
        broadcaster.publish(Notification(method="early"))
        late = broadcaster.subscribe()
        broadcaster.publish(Notification(method="late"))

        assert (await late.get()).method == "late"

    async def test_overflow_drops_for_slow_subscriber_only(self) -> None:
        broadcaster = NotificationBroadcaster(queue_size=2)
        slow = broadcaster.subscribe()

        for i in range(3):
            broadcaster.publish(Notification(method=f"n{i}"))

        assert slow.dropped == 1
        assert (await slow.get()).method == "n0"
        assert (await slow.get()).method == "n1"

    async def test_context_manager_unsubscribes(self) -> None:
        broadcaster = NotificationBroadcaster()
        async with broadcaster.subscribe():
            assert broadcaster.subscriber_count == 1
        assert broadcaster.subscriber_count == 0

    async def test_async_iteration(self) -> None:
        broadcaster = NotificationBroadcaster()
        subscription = broadcaster.subscribe()
        broadcaster.publish(Notification(method="one"))
        broadcaster.publish(Notification(method="two"))

        seen = []
        async for note in subscription:
            seen.append(note.method)
            if len(seen) == 2:
                break
        assert seen == ["one", "two"]


class TestBackoff:
    def test_exponential_and_capped(self) -> None:
        listener = SSEListener(
            httpx.AsyncClient(),
            SSE_URL,
            NotificationBroadcaster(),
            settings=SSESettings(initial_backoff=1.0, max_backoff=8.0, jitter=False),
        )
        assert [listener.backoff_delay(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 8.0]

    def test_jitter_stays_within_bounds(self) -> None:
        listener = SSEListener(
            httpx.AsyncClient(),
            SSE_URL,
            NotificationBroadcaster(),
            settings=SSESettings(initial_backoff=2.0, max_backoff=60.0, jitter=True),
        )
        for _ in range(20):
            assert 1.0 <= listener.backoff_delay(1) <= 2.0


class TestSSEListener:
    async def test_publishes_stream_notifications(self) -> None:
        broadcaster = NotificationBroadcaster()
        subscription = broadcaster.subscribe()
        listener = _listener(
            lambda r: _event_stream({"jsonrpc": "2.0", "method": "tools/changed"}),
            broadcaster,
        )

        listener.start()
        note = await asyncio.wait_for(subscription.get(), 2.0)
        await listener.stop()

        assert note.method == "tools/changed"

    async def test_request_headers(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return _event_stream()

        listener = _listener(handler, NotificationBroadcaster(), session_id="s-42")
        listener.start()
        await _wait_stopped(listener)

        sent = captured[0]
        assert sent.method == "GET"
        assert sent.headers["Accept"] == "text/event-stream"
        assert sent.headers["Cache-Control"] == "no-cache"
        assert sent.headers["X-Session-Id"] == "s-42"

    async def test_non_2xx_exits_without_retry(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(404)

        listener = _listener(handler, NotificationBroadcaster(), SSESettings(initial_backoff=0.0, jitter=False))
        listener.start()
        await _wait_stopped(listener)

        assert len(calls) == 1
        assert listener.reconnects == 0

    async def test_reconnects_after_error(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return _event_stream({"method": "after-reconnect"})

        broadcaster = NotificationBroadcaster()
        subscription = broadcaster.subscribe()
        listener = _listener(
            handler, broadcaster, SSESettings(initial_backoff=0.0, jitter=False, max_retries=5)
        )

        listener.start()
        note = await asyncio.wait_for(subscription.get(), 2.0)
        await listener.stop()

        assert note.method == "after-reconnect"
        assert listener.reconnects >= 1

    async def test_gives_up_after_max_retries(self) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            raise httpx.ConnectError("refused", request=request)

        listener = _listener(
            handler, NotificationBroadcaster(), SSESettings(initial_backoff=0.0, jitter=False, max_retries=2)
        )
        listener.start()
        await _wait_stopped(listener)

        assert len(attempts) == 3

    async def test_undecodable_data_skipped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            body = 'data: not json\n\ndata: {"method": "ok"}\n\n'
            return httpx.Response(200, content=body.encode(), headers={"Content-Type": "text/event-stream"})

        broadcaster = NotificationBroadcaster()
        subscription = broadcaster.subscribe()
        listener = _listener(handler, broadcaster)

        listener.start()
        note = await asyncio.wait_for(subscription.get(), 2.0)
        await listener.stop()

        assert note.method == "ok"

    async def test_stop_is_idempotent(self) -> None:
        listener = _listener(lambda r: _event_stream(), NotificationBroadcaster())
        await listener.stop()
        listener.start()
        await listener.stop()
        await listener.stop()
        assert listener.running is False

    async def test_stop_after_listener_crashed(self, caplog: pytest.LogCaptureFixture) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("boom")

        listener = _listener(handler, NotificationBroadcaster())
        listener.start()
        await _wait_stopped(listener)

        await listener.stop()

        assert listener.running is False
        assert "had already failed" in caplog.text
