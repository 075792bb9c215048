"""Periodic reminder agent.

Polls the ``reminder`` tool of an MCP server: due reminders on every check,
a full summary once per summary interval.  One failed tick is logged and the
loop carries on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from mcplink.protocols.mcp.connection import MCPConnection

logger = logging.getLogger(__name__)

REMINDER_TOOL = "reminder"
NO_DUE_MARKER = "No due reminders"


@dataclass(frozen=True)
class AgentReport:
    """One piece of agent output: ``kind`` is ``"due"`` or ``"summary"``."""

    kind: str
    text: str


Reporter = Callable[[AgentReport], None]


def _log_reporter(report: AgentReport) -> None:
    logger.info("%s:\n%s", report.kind.upper(), report.text)


class ReminderAgent:
    def __init__(
        self,
        connection: MCPConnection,
        *,
        check_interval: float = 3600.0,
        summary_interval: float = 6 * 3600.0,
        reporter: Reporter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            connection: A connected (or connectable) MCP connection.
            check_interval: Seconds between due-reminder checks.
            summary_interval: Seconds between full summaries.
            reporter: Receives every non-empty report.  Logs at INFO by default.
            clock: Monotonic time source, in seconds.
        """
        self._connection = connection
        self.check_interval = check_interval
        self.summary_interval = summary_interval
        self._reporter = reporter or _log_reporter
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._last_summary: float | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check_due(self) -> AgentReport | None:
        result = await self._connection.call_tool(REMINDER_TOOL, {"action": "get_due"})
        if result is None or result.is_error:
            logger.warning("get_due failed: %s", result.text if result else "no response")
            return None
        text = result.text
        if not text or NO_DUE_MARKER in text:
            return None
        return AgentReport("due", text)

    async def fetch_summary(self) -> AgentReport | None:
        result = await self._connection.call_tool(REMINDER_TOOL, {"action": "get_summary"})
        if result is None or result.is_error:
            logger.warning("get_summary failed: %s", result.text if result else "no response")
            return None
        return AgentReport("summary", result.text) if result.text else None

    async def run_once(self, *, summary: bool | None = None) -> list[AgentReport]:
        """Run a single tick and report what it found.

        *summary* forces (True) or suppresses (False) the summary; by default
        it is fetched when the summary interval has elapsed.
        """
        now = self._clock()
        if self._last_summary is None:
            self._last_summary = now
        if summary is None:
            summary = now - self._last_summary >= self.summary_interval

        reports = []
        due = await self.check_due()
        if due is not None:
            reports.append(due)
        if summary:
            self._last_summary = now
            report = await self.fetch_summary()
            if report is not None:
                reports.append(report)

        for report in reports:
            self._reporter(report)
        return reports

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Reminder agent tick failed")
            await asyncio.sleep(self.check_interval)

    def start(self) -> None:
        if self.running:
            logger.warning("Reminder agent already running")
            return
        logger.info(
            "Starting reminder agent for %s (check every %ss, summary every %ss)",
            self._connection.server_url,
            self.check_interval,
            self.summary_interval,
        )
        self._task = asyncio.create_task(self._loop(), name="reminder-agent")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Reminder agent stopped")

    async def join(self) -> None:
        """Wait until the agent is stopped."""
        task = self._task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
