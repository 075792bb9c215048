"""Server-Sent-Events listener and notification broadcast.

:class:`SSEListener` keeps one long-lived ``GET`` stream open per connection
and republishes decoded notifications on a :class:`NotificationBroadcaster`.
Lost streams are reopened with exponential backoff; a server that answers the
``GET`` with a non-2xx status has no push channel and is left alone.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Literal

import httpx
from pydantic import ValidationError

from mcplink.config import SSESettings
from mcplink.protocols.mcp.models import Notification

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"

SSEFieldName = Literal["data", "event", "id", "retry"]


# ---------------------------------------------------------------------------
# Broadcast channel
# ---------------------------------------------------------------------------


class Subscription:
    """One consumer's view of a :class:`NotificationBroadcaster`.

    Receives every notification published after it was created.  Use as an
    async iterator, ideally inside ``async with`` so it detaches on exit::

        async with connection.subscribe() as notifications:
            async for note in notifications:
                ...
    """

    def __init__(self, broadcaster: NotificationBroadcaster, maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def _offer(self, notification: Notification) -> None:
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("Subscriber queue full, dropping %s", notification.method or "notification")

    async def get(self) -> Notification:
        return await self._queue.get()

    def close(self) -> None:
        self._broadcaster.unsubscribe(self)

    def __aiter__(self) -> AsyncIterator[Notification]:
        return self

    async def __anext__(self) -> Notification:
        return await self._queue.get()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *_: object) -> None:
        self.close()


class NotificationBroadcaster:
    """Multi-consumer channel without replay."""

    def __init__(self, queue_size: int = 64) -> None:
        self._queue_size = queue_size
        self._subscribers: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self._queue_size)
        self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def publish(self, notification: Notification) -> None:
        for subscription in list(self._subscribers):
            subscription._offer(notification)


# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SSEField:
    name: SSEFieldName
    value: str


def parse_sse_line(line: str) -> SSEField | None:
    """Parse one line of an event stream.

    Returns ``None`` for blank lines (event boundaries).  A line with no
    recognised prefix is treated as raw data.
    """
    stripped = line.strip()
    if not stripped:
        return None
    for name in ("data", "event", "id", "retry"):
        prefix = f"{name}:"
        if stripped.startswith(prefix):
            return SSEField(name, stripped[len(prefix):].lstrip())  # type: ignore[arg-type]
    return SSEField("data", stripped)


def decode_notification(data: str) -> Notification | None:
    """JSON-decode an SSE data payload, or ``None`` if it is not a notification."""
    try:
        return Notification.model_validate(json.loads(data))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Failed to parse SSE event: %s", exc)
        logger.debug("Raw SSE data: %s", data)
        return None


# ---------------------------------------------------------------------------
# Listener
# ---------------------------------------------------------------------------


class StreamUnavailable(Exception):
    """The server answered the SSE request with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"SSE endpoint returned HTTP {status_code}")


class SSEListener:
    """Supervised background task reading one SSE stream.

    ``session_id`` is a callable so each (re)connect picks up the latest
    session id of the owning connection.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str,
        broadcaster: NotificationBroadcaster,
        *,
        session_id: Callable[[], str | None] = lambda: None,
        settings: SSESettings | None = None,
    ) -> None:
        self._http = http
        self._url = url
        self._broadcaster = broadcaster
        self._session_id = session_id
        self._settings = settings or SSESettings()
        self._task: asyncio.Task[None] | None = None
        self._connected = asyncio.Event()
        self.reconnects = 0

    @property
    def url(self) -> str:
        return self._url

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def connected(self) -> bool:
        """``True`` while a stream is open."""
        return self.running and self._connected.is_set()

    def start(self) -> None:
        """Start the listener task (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._supervise(), name=f"sse:{self._url}")

    async def stop(self) -> None:
        """Cancel the listener task and wait for it to finish."""
        task, self._task = self._task, None
        self._connected.clear()
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("SSE listener for %s had already failed", self._url)

    async def restart(self) -> None:
        await self.stop()
        self.reconnects = 0
        self.start()

    async def wait_connected(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._connected.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def backoff_delay(self, attempt: int) -> float:
        """Delay before reconnect number *attempt* (1-based)."""
        delay = min(
            self._settings.max_backoff,
            self._settings.initial_backoff * (2 ** (attempt - 1)),
        )
        if self._settings.jitter:
            delay *= random.uniform(0.5, 1.0)
        return delay

    async def _supervise(self) -> None:
        attempt = 0
        while True:
            try:
                await self._stream_once()
                logger.debug("SSE stream ended: %s", self._url)
            except StreamUnavailable as exc:
                logger.info("%s; server has no push channel", exc)
                return
            except (httpx.HTTPError, httpx.StreamError) as exc:
                logger.warning("SSE connection error for %s: %s", self._url, exc)
            finally:
                if self._connected.is_set():
                    attempt = 0
                self._connected.clear()

            attempt += 1
            if self._settings.max_retries is not None and attempt > self._settings.max_retries:
                logger.warning("Giving up on SSE stream %s after %d retries", self._url, attempt - 1)
                return
            delay = self.backoff_delay(attempt)
            logger.debug("Reconnecting SSE stream %s in %.2fs", self._url, delay)
            await asyncio.sleep(delay)
            self.reconnects += 1

    async def _stream_once(self) -> None:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        session_id = self._session_id()
        if session_id:
            headers[SESSION_HEADER] = session_id

        timeout = httpx.Timeout(None, connect=10.0)
        async with self._http.stream("GET", self._url, headers=headers, timeout=timeout) as response:
            if not response.is_success:
                raise StreamUnavailable(response.status_code)
            logger.info("SSE connection established: %s", self._url)
            self._connected.set()
            async for line in response.aiter_lines():
                self._handle_line(line)

    def _handle_line(self, line: str) -> None:
        field = parse_sse_line(line)
        if field is None:
            return
        if field.name == "data":
            notification = decode_notification(field.value)
            if notification is not None:
                logger.debug("Received SSE message: %s", notification.method or "notification")
                self._broadcaster.publish(notification)
        elif field.name == "retry":
            logger.debug("SSE retry interval: %sms", field.value)
        else:
            logger.debug("SSE %s: %s", field.name, field.value)
