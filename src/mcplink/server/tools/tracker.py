"""In-memory mock issue tracker behind the ``yandex_tracker`` tool."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel

from mcplink.protocols.mcp.models import ToolDescriptor
from mcplink.server.errors import ToolExecutionError
from mcplink.server.tools.base import optional_str, require_str

logger = logging.getLogger(__name__)


class TrackerTask(BaseModel):
    key: str
    summary: str
    status: str = "open"
    description: str | None = None
    assignee: str | None = None


def demo_tasks() -> list[TrackerTask]:
    return [
        TrackerTask(key="TEST-1", summary="Fix the login bug", description="Users cannot sign in"),
        TrackerTask(key="TEST-2", summary="Add full-text search", description="Implement search across issues"),
        TrackerTask(
            key="TEST-3",
            summary="Update the API documentation",
            status="inProgress",
            description="Refresh the OpenAPI docs",
        ),
        TrackerTask(key="TEST-4", summary="Optimise database queries", description="Improve performance"),
        TrackerTask(key="TEST-5", summary="Cover the payments module with tests", description="Critical paths first"),
        TrackerTask(
            key="TEST-6",
            summary="Fix email validation",
            status="resolved",
            description="Email validation fixed",
        ),
        TrackerTask(key="TEST-7", summary="Set up CI/CD", description="Automate deployment"),
    ]


class IssueTracker:
    """A list of tasks; keys are ``<queue>-<n>`` with ``n`` the new task count."""

    def __init__(self, tasks: list[TrackerTask] | None = None) -> None:
        self._tasks = list(demo_tasks() if tasks is None else tasks)

    def open_tasks(self) -> list[TrackerTask]:
        return [t for t in self._tasks if t.status == "open"]

    def get(self, key: str) -> TrackerTask | None:
        return next((t for t in self._tasks if t.key == key), None)

    def create(self, summary: str, description: str | None = None, queue: str = "TEST") -> TrackerTask:
        task = TrackerTask(key=f"{queue}-{len(self._tasks) + 1}", summary=summary, description=description)
        self._tasks.append(task)
        logger.info("Created tracker task %s - %s", task.key, task.summary)
        return task


class TrackerTool:
    name = "yandex_tracker"
    actions = ("get_open_tasks", "count_open_tasks", "get_task", "create_task")

    def __init__(self, tracker: IssueTracker, default_queue: str = "TEST") -> None:
        self._tracker = tracker
        self._default_queue = default_queue

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description="Work with issue tracker tasks: list and count open tasks, fetch or create a task",
            input_schema={
                "type": "object",
                "properties": {
                    "action": {"type": "string", "enum": list(self.actions)},
                    "task_id": {"type": "string", "description": "Task key (required for get_task)"},
                    "summary": {"type": "string", "description": "Task title (required for create_task)"},
                    "description": {"type": "string", "description": "Task description (optional)"},
                    "queue": {"type": "string", "description": f"Queue, default '{self._default_queue}'"},
                },
                "required": ["action"],
            },
        )

    async def run(self, arguments: dict[str, Any]) -> str:
        action = str(arguments.get("action", ""))
        queue = optional_str(arguments, "queue") or self._default_queue

        if action == "get_open_tasks":
            tasks = self._tracker.open_tasks()
            listing = "\n".join(f"- {t.key}: {t.summary}" for t in tasks)
            return f"Open tasks in queue '{queue}':\n\n{listing}\n\nTotal: {len(tasks)} tasks"
        if action == "count_open_tasks":
            return f"Open tasks in queue '{queue}': {len(self._tracker.open_tasks())}"
        if action == "get_task":
            task_id = require_str(arguments, "task_id", self.name)
            task = self._tracker.get(task_id)
            if task is None:
                raise ToolExecutionError(self.name, f"Task '{task_id}' not found")
            return (
                f"Task {task.key}:\nStatus: {task.status}\nSummary: {task.summary}\n"
                f"Description: {task.description or 'No description'}"
            )
        if action == "create_task":
            summary = require_str(arguments, "summary", self.name)
            task = self._tracker.create(summary, optional_str(arguments, "description"), queue)
            text = f"Task created.\n\nKey: {task.key}\nSummary: {task.summary}\nStatus: {task.status}"
            if task.description:
                text += f"\nDescription: {task.description}"
            return text
        raise ToolExecutionError(
            self.name, f"Unknown action: {action}. Available actions: {', '.join(self.actions)}"
        )
