"""Tool registry with skill-scoped selection and safe dispatch."""
from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from agent_tool_engine.logging import get_logger
from agent_tool_engine.models import ToolCall, ToolDefinition, ToolResult

logger = get_logger("tools.registry")

# async callable(args) -> str | ToolResult (sync callables are accepted too)
ToolExecutor = Callable[[dict[str, Any]], Awaitable[Any] | Any]


@dataclass(frozen=True)
class ToolEntry:
    """A registered tool: definition, executor and skill tags."""

    definition: ToolDefinition
    executor: ToolExecutor
    skills: frozenset[str] = frozenset()

    @property
    def universal(self) -> bool:
        return not self.skills


class ToolRegistry:
    """
    Registry mapping tool names to definitions and executors.

    Tools tagged with no skill are universal and always offered to the
    model; tagged tools are only offered when one of their skills is active.

    Mutations replace the underlying dict under a lock (copy-on-write), so
    concurrent agent loops can read and dispatch without locking.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolEntry] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        definition: ToolDefinition,
        executor: ToolExecutor,
        skills: Iterable[str] = (),
    ) -> None:
        """Register a tool. An existing tool with the same name is overwritten."""
        entry = ToolEntry(
            definition=definition,
            executor=executor,
            skills=frozenset(s for s in skills if s),
        )
        with self._lock:
            if name in self._tools:
                logger.warning("Tool '%s' is already registered; overwriting", name)
            tools = dict(self._tools)
            tools[name] = entry
            self._tools = tools

    def unregister(self, name: str) -> bool:
        with self._lock:
            if name not in self._tools:
                return False
            tools = dict(self._tools)
            del tools[name]
            self._tools = tools
        return True

    def has(self, name: str) -> bool:
        return name in self._tools

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> ToolEntry | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def skills_for(self, name: str) -> frozenset[str]:
        """Skill tags of ``name``; empty for universal or unknown tools."""
        entry = self._tools.get(name)
        return entry.skills if entry else frozenset()

    def get_all_definitions(self) -> list[ToolDefinition]:
        return [e.definition for e in self._tools.values()]

    def get_definitions_for_skills(self, skill_names: Iterable[str]) -> list[ToolDefinition]:
        """Universal tools plus every tool tagged with one of ``skill_names``."""
        wanted = set(skill_names)
        return [
            e.definition
            for e in self._tools.values()
            if e.universal or e.skills & wanted
        ]

    async def execute_tool(self, call: ToolCall) -> ToolResult:
        """
        Dispatch a tool call. Never raises for executor failures.

        Malformed arguments default to ``{}``. Unknown tools and executor
        exceptions become error results whose content is a JSON
        ``{"error": ...}`` string, so the return value can always be appended
        as the tool message for ``call``.
        """
        name = call.function.name
        args = call.parse_arguments()

        entry = self._tools.get(name)
        if entry is None:
            logger.debug("Unknown tool requested: %s", name)
            return ToolResult.error(f"unknown tool {name}")

        logger.debug("Executing tool %s with args: %s", name, args)
        try:
            output = entry.executor(args)
            if asyncio.iscoroutine(output) or asyncio.isfuture(output):
                output = await output
            return ToolResult.from_output(output)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            return ToolResult.error(f"tool execution failed: {e}")
