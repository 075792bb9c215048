"""Reminder store and the ``reminder`` tool.

Reminders live in one JSON array file.  Ids have the form
``reminder_<epoch-ms>_<index>``; the index only ever grows, so ids are not
reused after deletion.
"""

from __future__ import annotations

import enum
import itertools
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mcplink.protocols.mcp.models import ToolDescriptor
from mcplink.server.errors import ToolExecutionError
from mcplink.server.tools.base import optional_str, require_str
from mcplink.server.tools.storage import JsonArrayFile, now_ms

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
SUMMARY_EXAMPLES = 5


class Priority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class Reminder(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str | None = None
    created_at: int = Field(alias="createdAt")
    due_date: int | None = Field(default=None, alias="dueDate")
    priority: Priority = Priority.NORMAL
    category: str | None = None
    completed: bool = False
    completed_at: int | None = Field(default=None, alias="completedAt")

    def is_due(self, now: int) -> bool:
        return not self.completed and self.due_date is not None and self.due_date <= now


class ReminderStore:
    """File-backed reminder CRUD with due/overdue queries."""

    def __init__(self, path: Path, *, clock: Callable[[], int] = now_ms) -> None:
        self._file = JsonArrayFile(path, Reminder)
        self._clock = clock
        self._sequence: itertools.count[int] | None = None

    @property
    def path(self) -> Path:
        return self._file.path

    def _next_index(self, existing: list[Reminder]) -> int:
        if self._sequence is None:
            start = len(existing)
            for reminder in existing:
                suffix = reminder.id.rsplit("_", 1)[-1]
                if suffix.isdigit():
                    start = max(start, int(suffix) + 1)
            self._sequence = itertools.count(start)
        return next(self._sequence)

    async def create(
        self,
        title: str,
        description: str | None = None,
        due_date: int | None = None,
        priority: Priority | str = Priority.NORMAL,
        category: str | None = None,
    ) -> Reminder:
        async with self._file.transaction() as reminders:
            now = self._clock()
            reminder = Reminder(
                id=f"reminder_{now}_{self._next_index(reminders)}",
                title=title,
                description=description,
                created_at=now,
                due_date=due_date,
                priority=Priority(priority),
                category=category,
            )
            reminders.append(reminder)
            reminders.mark_dirty()
        logger.debug("Created reminder %s", reminder.id)
        return reminder

    async def list(self, include_completed: bool = True) -> list[Reminder]:
        reminders = await self._file.read()
        if include_completed:
            return reminders
        return [r for r in reminders if not r.completed]

    async def get(self, reminder_id: str) -> Reminder | None:
        return next((r for r in await self._file.read() if r.id == reminder_id), None)

    async def delete(self, reminder_id: str) -> bool:
        async with self._file.transaction() as reminders:
            for index, reminder in enumerate(reminders):
                if reminder.id == reminder_id:
                    del reminders[index]
                    reminders.mark_dirty()
                    return True
        return False

    async def complete(self, reminder_id: str) -> bool:
        """Mark a reminder completed; ``False`` if missing or already completed."""
        async with self._file.transaction() as reminders:
            for index, reminder in enumerate(reminders):
                if reminder.id != reminder_id:
                    continue
                if reminder.completed:
                    return False
                reminders[index] = reminder.model_copy(
                    update={"completed": True, "completed_at": self._clock()}
                )
                reminders.mark_dirty()
                return True
        return False

    async def get_due(self, now: int | None = None) -> list[Reminder]:
        """Pending reminders whose due date has passed."""
        now = self._clock() if now is None else now
        return [r for r in await self._file.read() if r.is_due(now)]

    async def summary(self, now: int | None = None) -> str:
        """Human-readable overview meant for display or an AI prompt."""
        now = self._clock() if now is None else now
        reminders = await self._file.read()
        pending = [r for r in reminders if not r.completed]
        overdue = [r for r in pending if r.due_date is not None and r.due_date < now]
        upcoming = [r for r in pending if r.due_date is not None and now <= r.due_date <= now + DAY_MS]
        high = [r for r in pending if r.priority is Priority.HIGH]

        lines = [
            "REMINDER SUMMARY",
            "=" * 40,
            f"Total reminders: {len(reminders)}",
            f"Completed: {len(reminders) - len(pending)}",
            f"Pending: {len(pending)}",
            f"Overdue: {len(overdue)}",
            f"Due within 24h: {len(upcoming)}",
            f"High priority: {len(high)}",
        ]
        if overdue:
            lines += ["", "OVERDUE:"]
            lines += _example_lines(overdue, "was due")
        if upcoming:
            lines += ["", "DUE WITHIN 24H:"]
            lines += _example_lines(upcoming, "due")
        if high:
            lines += ["", "HIGH PRIORITY:"]
            lines += _example_lines(high, None)
        return "\n".join(lines)


def format_timestamp(epoch_ms: int) -> str:
    try:
        return datetime.fromtimestamp(epoch_ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return f"{epoch_ms} ms"


def _example_lines(reminders: list[Reminder], label: str | None) -> list[str]:
    lines: list[str] = []
    for reminder in reminders[:SUMMARY_EXAMPLES]:
        if label and reminder.due_date is not None:
            lines.append(f"  - {reminder.title} ({label}: {format_timestamp(reminder.due_date)})")
        else:
            lines.append(f"  - {reminder.title}")
        if reminder.description:
            lines.append(f"    {reminder.description}")
    return lines


def format_reminder(reminder: Reminder) -> str:
    status = "completed" if reminder.completed else "pending"
    lines = [
        f"[{reminder.id}] {reminder.title}",
        f"  Status: {status}",
        f"  Priority: {reminder.priority.value}",
    ]
    if reminder.description:
        lines.append(f"  Description: {reminder.description}")
    if reminder.category:
        lines.append(f"  Category: {reminder.category}")
    if reminder.due_date is not None:
        lines.append(f"  Due: {format_timestamp(reminder.due_date)}")
    return "\n".join(lines)


def parse_due_date(value: Any) -> int | None:
    """Accept epoch milliseconds or an ISO-8601 string."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("due_date must be epoch milliseconds or ISO-8601")
    text = str(value).strip()
    if isinstance(value, (int, float)):
        try:
            millis = int(value)
        except OverflowError as exc:
            raise ValueError(f"due_date out of range: {value}") from exc
    elif text.lstrip("-").isdigit():
        millis = int(text)
    else:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        millis = int(parsed.astimezone(timezone.utc).timestamp() * 1000)
    return check_due_date(millis)


def check_due_date(millis: int) -> int:
    """Reject timestamps that cannot be shown as a local date."""
    try:
        datetime.fromtimestamp(millis / 1000).astimezone()
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"due_date out of range: {millis}") from exc
    return millis


class ReminderTool:
    """The ``reminder`` tool over a :class:`ReminderStore`."""

    name = "reminder"
    actions = ("create", "list", "get", "delete", "complete", "get_due", "get_summary")

    def __init__(self, store: ReminderStore) -> None:
        self._store = store

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description="Create, list, complete and summarise reminders",
            input_schema={
                "type": "object",
                "properties": {
                    "action": {"type": "string", "enum": list(self.actions)},
                    "reminder_id": {"type": "string", "description": "Required for get/delete/complete"},
                    "title": {"type": "string", "description": "Required for create"},
                    "description": {"type": "string"},
                    "due_date": {
                        "type": "string",
                        "description": "Epoch milliseconds or ISO-8601 timestamp",
                    },
                    "due_in_minutes": {"type": "number", "description": "Alternative to due_date"},
                    "priority": {"type": "string", "enum": [p.value for p in Priority]},
                    "category": {"type": "string"},
                    "include_completed": {"type": "boolean"},
                },
                "required": ["action"],
            },
        )

    async def run(self, arguments: dict[str, Any]) -> str:
        action = require_str(arguments, "action", self.name)
        if action == "create":
            return await self._create(arguments)
        if action == "list":
            include = arguments.get("include_completed", True)
            reminders = await self._store.list(include_completed=bool(include))
            if not reminders:
                return "No reminders."
            return "\n\n".join(format_reminder(r) for r in reminders)
        if action == "get":
            reminder = await self._store.get(require_str(arguments, "reminder_id", self.name))
            if reminder is None:
                raise ToolExecutionError(self.name, "Reminder not found")
            return format_reminder(reminder)
        if action == "delete":
            reminder_id = require_str(arguments, "reminder_id", self.name)
            if not await self._store.delete(reminder_id):
                raise ToolExecutionError(self.name, f"Reminder '{reminder_id}' not found")
            return f"Reminder '{reminder_id}' deleted."
        if action == "complete":
            reminder_id = require_str(arguments, "reminder_id", self.name)
            if not await self._store.complete(reminder_id):
                raise ToolExecutionError(
                    self.name, f"Reminder '{reminder_id}' not found or already completed"
                )
            return f"Reminder '{reminder_id}' marked as completed."
        if action == "get_due":
            due = await self._store.get_due()
            if not due:
                return "No due reminders."
            return "Due reminders:\n\n" + "\n\n".join(format_reminder(r) for r in due)
        if action == "get_summary":
            return await self._store.summary()
        raise ToolExecutionError(
            self.name, f"Unknown action: {action}. Available actions: {', '.join(self.actions)}"
        )

    async def _create(self, arguments: dict[str, Any]) -> str:
        title = require_str(arguments, "title", self.name)
        now = now_ms()
        try:
            due_date = parse_due_date(arguments.get("due_date"))
            if due_date is None and arguments.get("due_in_minutes") is not None:
                due_date = check_due_date(now + int(float(arguments["due_in_minutes"]) * 60_000))
            priority = Priority(arguments.get("priority") or Priority.NORMAL)
        except (ValueError, OverflowError) as exc:
            raise ToolExecutionError(self.name, f"Invalid argument: {exc}") from exc

        reminder = await self._store.create(
            title=title,
            description=optional_str(arguments, "description"),
            due_date=due_date,
            priority=priority,
            category=optional_str(arguments, "category"),
        )
        return "Reminder created.\n\n" + format_reminder(reminder)
