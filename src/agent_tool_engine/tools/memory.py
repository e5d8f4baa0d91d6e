"""Memory tools - save and search workspace notes, update the user profile."""
from __future__ import annotations

import json
from typing import Any

from agent_tool_engine.logging import get_logger
from agent_tool_engine.memory import WorkspaceMemory
from agent_tool_engine.models import ToolResult
from agent_tool_engine.tools.base import BaseTool

logger = get_logger("tools.memory")

PROFILE_SECTIONS = ["investment_style", "preferences", "focus_sectors", "risk_tolerance"]


class SaveMemoryTool(BaseTool):
    """Append a dated note to ``MEMORY.md``."""

    skills = ("memory",)

    def __init__(self, memory: WorkspaceMemory) -> None:
        self.memory = memory

    @property
    def name(self) -> str:
        return "save_memory"

    @property
    def description(self) -> str:
        return "Save a trading note or other important fact to the memory file."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "The fact to remember"},
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": 'Tags, e.g. ["trade", "AAPL"]',
                },
            },
            "required": ["content"],
        }

    async def execute(self, args: dict[str, Any]) -> str | ToolResult:
        content = str(args.get("content") or "").strip()
        if not content:
            return ToolResult.error("content is required")
        tags = args.get("tags") or []
        if not isinstance(tags, list):
            tags = [tags]

        self.memory.save(content, [str(t) for t in tags])
        return json.dumps({"success": True, "saved": content}, ensure_ascii=False)


class SearchMemoryTool(BaseTool):
    """Search ``MEMORY.md`` for lines matching any query word."""

    skills = ("memory",)

    def __init__(self, memory: WorkspaceMemory) -> None:
        self.memory = memory

    @property
    def name(self) -> str:
        return "search_memory"

    @property
    def description(self) -> str:
        return "Search the memory file for notes matching the query words."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search keywords"},
            },
            "required": ["query"],
        }

    async def execute(self, args: dict[str, Any]) -> str | ToolResult:
        query = str(args.get("query") or "")
        return json.dumps(self.memory.search(query), ensure_ascii=False)


class UpdateUserProfileTool(BaseTool):
    """Rewrite one ``## <section>`` of ``USER.md``."""

    skills = ("memory",)

    def __init__(self, memory: WorkspaceMemory) -> None:
        self.memory = memory

    @property
    def name(self) -> str:
        return "update_user_profile"

    @property
    def description(self) -> str:
        return "Update a section of the user's investor profile (style, preferences, sectors, risk)."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "section": {
                    "type": "string",
                    "description": "Profile section: " + " / ".join(PROFILE_SECTIONS),
                },
                "content": {"type": "string", "description": "New section content"},
            },
            "required": ["section", "content"],
        }

    async def execute(self, args: dict[str, Any]) -> str | ToolResult:
        section = str(args.get("section") or "").strip()
        content = str(args.get("content") or "").strip()
        if not section or "\n" in section:
            return ToolResult.error("section must be a single-line name")
        if not content:
            return ToolResult.error("content is required")

        self.memory.update_profile(section, content)
        logger.info("Profile section %s updated", section)
        return json.dumps(
            {"success": True, "section": section, "content": content},
            ensure_ascii=False,
        )
