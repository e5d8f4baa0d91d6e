"""Switch-task tool - ask the host to move the conversation to another task."""
from __future__ import annotations

from typing import Any

from agent_tool_engine.models import ToolResult
from agent_tool_engine.tools.base import BaseTool

LOBBY = "lobby"


class SwitchTaskTool(BaseTool):
    """Ends the current agent loop and tells the host which task to open next."""

    @property
    def name(self) -> str:
        return "switch_task"

    @property
    def description(self) -> str:
        return (
            "Switch the conversation to another task. Use the task id, or "
            f"'{LOBBY}' to return to the lobby. Ends the current turn."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "target": {
                    "type": "string",
                    "description": f"Task id to switch to, or '{LOBBY}'",
                },
            },
            "required": ["target"],
        }

    async def execute(self, args: dict[str, Any]) -> str | ToolResult:
        target = str(args.get("target") or "").strip()
        if not target:
            return ToolResult.error("target is required")
        return ToolResult.switch_task(target)
