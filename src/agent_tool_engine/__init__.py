"""
Agent Tool Engine - tool-calling orchestration for streaming LLM agents.

The engine streams chat completions from an OpenAI-compatible endpoint,
reassembles tool calls from the stream, dispatches them through a registry
and feeds the results back to the model across several rounds. Third-party
HTTP APIs can be added at runtime as declarative JSON adapters.

Example:
    from agent_tool_engine import AgentHost, EngineConfig

    host = AgentHost(EngineConfig.from_yaml(Path("agent.yaml")))
    host.registry.register("fetch_quote", quote_definition, fetch_quote, ["market"])

    output = await host.send_message("How is AAPL doing today?")
    print(output.content)
"""

from agent_tool_engine.adapters import (
    AdapterConfig,
    AdapterEngine,
    AdapterStore,
    AdapterToolConfig,
    InstalledAdapter,
)
from agent_tool_engine.agent import (
    AgentInput,
    AgentLoop,
    AgentLoopConfig,
    AgentOutput,
    CancellationToken,
)
from agent_tool_engine.config import EngineConfig, ModelConfig
from agent_tool_engine.context import build_system_prompt, select_tools
from agent_tool_engine.errors import (
    AdapterConfigError,
    AdapterError,
    AdapterNotFoundError,
    AgentCancelledError,
    BlockedURLError,
    EngineError,
    MissingAPIKeyError,
    ProviderError,
)
from agent_tool_engine.events import AgentCallbacks, StreamChunk
from agent_tool_engine.host import AgentHost
from agent_tool_engine.http_client import HttpClient, HttpResponse, HttpxHttpClient
from agent_tool_engine.logging import get_logger, setup_logging
from agent_tool_engine.memory import WorkspaceMemory
from agent_tool_engine.models import (
    FunctionCall,
    Message,
    ToolCall,
    ToolDefinition,
    ToolExecution,
    ToolResult,
)
from agent_tool_engine.providers import ChatProvider, OpenAICompatibleProvider, create_provider
from agent_tool_engine.secrets import InMemorySecretStore, JsonFileSecretStore, SecretStore
from agent_tool_engine.skills import Skill, SkillCatalog, parse_skill_markdown
from agent_tool_engine.streaming import StreamDecoder, decode_stream
from agent_tool_engine.tools import BaseTool, ToolRegistry, register_builtin_tools

__version__ = "0.1.0"

__all__ = [
    # Host
    "AgentHost",
    # Agent loop
    "AgentLoop",
    "AgentLoopConfig",
    "AgentInput",
    "AgentOutput",
    "AgentCallbacks",
    "CancellationToken",
    # Config
    "EngineConfig",
    "ModelConfig",
    # Models
    "FunctionCall",
    "Message",
    "ToolCall",
    "ToolDefinition",
    "ToolExecution",
    "ToolResult",
    # Streaming
    "StreamChunk",
    "StreamDecoder",
    "decode_stream",
    # Providers
    "ChatProvider",
    "OpenAICompatibleProvider",
    "create_provider",
    # Tools
    "BaseTool",
    "ToolRegistry",
    "register_builtin_tools",
    # Adapters
    "AdapterConfig",
    "AdapterEngine",
    "AdapterStore",
    "AdapterToolConfig",
    "InstalledAdapter",
    "HttpClient",
    "HttpResponse",
    "HttpxHttpClient",
    # Secrets
    "SecretStore",
    "InMemorySecretStore",
    "JsonFileSecretStore",
    # Skills and context
    "Skill",
    "SkillCatalog",
    "parse_skill_markdown",
    "build_system_prompt",
    "select_tools",
    "WorkspaceMemory",
    # Errors
    "EngineError",
    "ProviderError",
    "MissingAPIKeyError",
    "AgentCancelledError",
    "AdapterError",
    "AdapterNotFoundError",
    "AdapterConfigError",
    "BlockedURLError",
    # Logging
    "get_logger",
    "setup_logging",
]
