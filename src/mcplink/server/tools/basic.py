"""Stateless demo tools: ``echo``, ``get_current_time`` and ``calculate``."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from mcplink.protocols.mcp.models import ToolDescriptor
from mcplink.server.errors import ToolExecutionError

_ALLOWED = re.compile(r"^[\d+\-*/().]+$")

# Order matters: the first operator present decides how the whole
# expression is split.  There is no precedence.
_OPERATORS = ("+", "-", "*", "/")


def evaluate_expression(expression: str) -> float:
    """Evaluate a restricted single-operator arithmetic expression.

    Whitespace is removed, then the expression is split on the first of
    ``+ - * /`` that appears and folded left to right.  Every operand must be a
    plain number, so ``"2+3*4"`` is rejected rather than evaluated with
    precedence.

    Raises:
        ValueError: For disallowed characters or unparseable operands.
        ZeroDivisionError: When dividing by zero.
    """
    clean = re.sub(r"\s+", "", expression)
    if not _ALLOWED.match(clean):
        raise ValueError("Invalid expression")

    operator = next((op for op in _OPERATORS if op in clean), None)
    try:
        if operator is None:
            return float(clean)
        operands = [float(part) for part in clean.split(operator)]
    except ValueError:
        raise ValueError(f"Cannot evaluate expression: {expression}") from None

    result = operands[0]
    for value in operands[1:]:
        if operator == "+":
            result += value
        elif operator == "-":
            result -= value
        elif operator == "*":
            result *= value
        else:
            if value == 0:
                raise ZeroDivisionError("Division by zero")
            result /= value
    return result


class EchoTool:
    name = "echo"
    descriptor = ToolDescriptor(
        name="echo",
        description="Echoes back the input text",
        input_schema={
            "type": "object",
            "properties": {"text": {"type": "string", "description": "Text to echo back"}},
            "required": ["text"],
        },
    )

    async def run(self, arguments: dict[str, Any]) -> str:
        return f"Echo: {arguments.get('text', '')}"


class CurrentTimeTool:
    name = "get_current_time"
    descriptor = ToolDescriptor(
        name="get_current_time",
        description="Returns the current server time",
        input_schema={"type": "object", "properties": {}},
    )

    async def run(self, arguments: dict[str, Any]) -> str:
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        return f"Current server time: {now}"


class CalculatorTool:
    name = "calculate"
    descriptor = ToolDescriptor(
        name="calculate",
        description=(
            "Evaluates a single-operator arithmetic expression such as '2 + 2'. "
            "Mixed operators are not supported."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "expression": {
                    "type": "string",
                    "description": "Mathematical expression to evaluate (e.g., '2 + 2')",
                }
            },
            "required": ["expression"],
        },
    )

    async def run(self, arguments: dict[str, Any]) -> str:
        expression = str(arguments.get("expression", ""))
        try:
            return f"Result: {evaluate_expression(expression)}"
        except (ValueError, ZeroDivisionError) as exc:
            raise ToolExecutionError(self.name, str(exc)) from exc
