"""Base class for tools implemented in Python."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from agent_tool_engine.models import ToolDefinition, ToolResult
from agent_tool_engine.tools.registry import ToolRegistry


class BaseTool(ABC):
    """
    Base class for built-in tools.

    Subclasses describe themselves (name, description, JSON-schema
    parameters) and implement ``execute``. ``skills`` scopes the tool to
    skill tags; an empty tuple makes it universal.
    """

    skills: tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]: ...

    @abstractmethod
    async def execute(self, args: dict[str, Any]) -> str | ToolResult: ...

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def register(self, registry: ToolRegistry) -> None:
        registry.register(self.name, self.definition(), self.execute, self.skills)
