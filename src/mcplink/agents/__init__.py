"""Long-running clients built on the MCP connection."""

from mcplink.agents.reminders import AgentReport, ReminderAgent

__all__ = ["AgentReport", "ReminderAgent"]
