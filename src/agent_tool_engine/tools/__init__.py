"""Tool registry and built-in tools."""
from __future__ import annotations

from typing import TYPE_CHECKING

from agent_tool_engine.memory import WorkspaceMemory
from agent_tool_engine.secrets import SecretStore
from agent_tool_engine.tools.base import BaseTool
from agent_tool_engine.tools.manage_adapter import ManageAdapterTool
from agent_tool_engine.tools.manage_secret import ManageSecretTool
from agent_tool_engine.tools.memory import SaveMemoryTool, SearchMemoryTool, UpdateUserProfileTool
from agent_tool_engine.tools.registry import ToolEntry, ToolExecutor, ToolRegistry
from agent_tool_engine.tools.switch_task import SwitchTaskTool

if TYPE_CHECKING:
    from agent_tool_engine.adapters.engine import AdapterEngine

__all__ = [
    "BaseTool",
    "ManageAdapterTool",
    "ManageSecretTool",
    "SaveMemoryTool",
    "SearchMemoryTool",
    "SwitchTaskTool",
    "ToolEntry",
    "ToolExecutor",
    "ToolRegistry",
    "UpdateUserProfileTool",
    "create_builtin_tools",
    "create_memory_tools",
    "register_builtin_tools",
]


def create_memory_tools(memory: WorkspaceMemory) -> list[BaseTool]:
    """Create the memory tools (skill ``memory``)."""
    return [
        SaveMemoryTool(memory),
        SearchMemoryTool(memory),
        UpdateUserProfileTool(memory),
    ]


def create_builtin_tools(
    secrets: SecretStore,
    adapters: AdapterEngine,
    memory: WorkspaceMemory | None = None,
) -> list[BaseTool]:
    """Create the built-in tools: universal ones, plus memory tools when given a workspace memory."""
    tools: list[BaseTool] = [
        SwitchTaskTool(),
        ManageSecretTool(secrets),
        ManageAdapterTool(adapters),
    ]
    if memory is not None:
        tools.extend(create_memory_tools(memory))
    return tools


def register_builtin_tools(
    registry: ToolRegistry,
    secrets: SecretStore,
    adapters: AdapterEngine,
    memory: WorkspaceMemory | None = None,
) -> list[str]:
    """Register the built-in tools and return their names."""
    tools = create_builtin_tools(secrets, adapters, memory)
    for tool in tools:
        tool.register(registry)
    return [t.name for t in tools]
