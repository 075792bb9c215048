"""Server-side tools and their backing stores."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcplink.server.tools.base import Tool, ToolRegistry
from mcplink.server.tools.basic import CalculatorTool, CurrentTimeTool, EchoTool
from mcplink.server.tools.information import InformationStore, SaveInfoTool
from mcplink.server.tools.reminders import ReminderStore, ReminderTool
from mcplink.server.tools.tracker import IssueTracker, TrackerTool

if TYPE_CHECKING:
    from mcplink.config import ServerSettings


def build_registry(
    settings: ServerSettings,
    *,
    reminders: ReminderStore | None = None,
    information: InformationStore | None = None,
    tracker: IssueTracker | None = None,
) -> ToolRegistry:
    """Construct every store once and register the full tool catalog."""
    reminders = reminders or ReminderStore(settings.reminders_path)
    information = information or InformationStore(settings.information_path)
    tracker = tracker or IssueTracker()
    return ToolRegistry([
        EchoTool(),
        CurrentTimeTool(),
        CalculatorTool(),
        TrackerTool(tracker, default_queue=settings.default_queue),
        ReminderTool(reminders),
        SaveInfoTool(information),
    ])


__all__ = [
    "CalculatorTool",
    "CurrentTimeTool",
    "EchoTool",
    "InformationStore",
    "IssueTracker",
    "ReminderStore",
    "ReminderTool",
    "SaveInfoTool",
    "Tool",
    "ToolRegistry",
    "TrackerTool",
    "build_registry",
]
