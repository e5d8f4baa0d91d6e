"""Secret management tool - store API keys that adapter tools need."""
from __future__ import annotations

import json
from typing import Any

from agent_tool_engine.logging import get_logger
from agent_tool_engine.models import ToolResult
from agent_tool_engine.secrets import SecretStore
from agent_tool_engine.tools.base import BaseTool

logger = get_logger("tools.manage_secret")


class ManageSecretTool(BaseTool):
    """Set, delete or list adapter secrets. Values are never returned."""

    def __init__(self, secrets: SecretStore) -> None:
        self.secrets = secrets

    @property
    def name(self) -> str:
        return "manage_api_secret"

    @property
    def description(self) -> str:
        return (
            "Manage API secrets used by installed adapters. "
            "action=set stores a value, action=delete removes it, "
            "action=list returns the stored key names (never the values)."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": ["set", "delete", "list"],
                    "description": "Operation to perform",
                },
                "key": {"type": "string", "description": "Secret name, e.g. COINGECKO_KEY"},
                "value": {"type": "string", "description": "Secret value (for set)"},
            },
            "required": ["action"],
        }

    async def execute(self, args: dict[str, Any]) -> str | ToolResult:
        action = args.get("action")
        key = str(args.get("key") or "").strip()

        if action == "list":
            return json.dumps({"keys": self.secrets.list_keys()})

        if not key:
            return ToolResult.error("key is required")

        if action == "set":
            value = args.get("value")
            if not isinstance(value, str) or not value:
                return ToolResult.error("value is required")
            self.secrets.set(key, value)
            logger.info("Secret %s stored", key)
            return json.dumps({"success": True, "key": key})

        if action == "delete":
            self.secrets.delete(key)
            logger.info("Secret %s deleted", key)
            return json.dumps({"success": True, "key": key})

        return ToolResult.error(f"unknown action: {action}")
