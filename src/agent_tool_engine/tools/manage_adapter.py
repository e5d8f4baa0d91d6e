"""Adapter management tool - install, uninstall and list HTTP adapters."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from agent_tool_engine.errors import AdapterError
from agent_tool_engine.models import ToolResult
from agent_tool_engine.tools.base import BaseTool

if TYPE_CHECKING:
    from agent_tool_engine.adapters.engine import AdapterEngine


class ManageAdapterTool(BaseTool):
    """Lets the model install third-party API adapters at runtime."""

    def __init__(self, adapters: AdapterEngine) -> None:
        self.adapters = adapters

    @property
    def name(self) -> str:
        return "manage_adapter"

    @property
    def description(self) -> str:
        return (
            "Manage HTTP API adapters. action=install takes a full adapter JSON "
            "document in 'config' and registers its tools; action=uninstall removes "
            "an adapter by id; action=list shows installed adapters and their tools. "
            "Tool names are global: installing a tool with an existing name replaces it."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": ["install", "uninstall", "list"],
                    "description": "Operation to perform",
                },
                "adapter_id": {"type": "string", "description": "Adapter id (for uninstall)"},
                "config": {
                    "type": "object",
                    "description": "Adapter document: {adapter: {...}, tools: [...]} (for install)",
                },
            },
            "required": ["action"],
        }

    async def execute(self, args: dict[str, Any]) -> str | ToolResult:
        action = args.get("action")

        if action == "list":
            return json.dumps({"adapters": self.adapters.registered_adapters()}, ensure_ascii=False)

        if action == "install":
            config = args.get("config")
            if not isinstance(config, (dict, str)):
                return ToolResult.error("config is required")
            try:
                installed = self.adapters.install_adapter(config)
            except AdapterError as e:
                return ToolResult.error(f"install failed: {e}")
            result: dict[str, Any] = {
                "success": True,
                "adapter_id": installed.id,
                "tools": installed.tools,
            }
            if installed.overwritten:
                result["warning"] = (
                    "these tools replaced existing tools with the same name: "
                    + ", ".join(installed.overwritten)
                )
            return json.dumps(result, ensure_ascii=False)

        if action == "uninstall":
            adapter_id = str(args.get("adapter_id") or "").strip()
            if not adapter_id:
                return ToolResult.error("adapter_id is required")
            try:
                removed = self.adapters.uninstall_adapter(adapter_id)
            except AdapterError as e:
                return ToolResult.error(f"uninstall failed: {e}")
            if not removed:
                return ToolResult.error(f"adapter {adapter_id} is not installed")
            return json.dumps({"success": True, "adapter_id": adapter_id})

        return ToolResult.error(f"unknown action: {action}")
