"""
Agent host: owns the registry, stores, adapters and provider of one app.

All state lives on the :class:`AgentHost` instance, so several hosts (for
example one per test) can coexist in a process.
"""

from __future__ import annotations

from collections.abc import Sequence

from agent_tool_engine.adapters.engine import AdapterEngine
from agent_tool_engine.adapters.store import AdapterStore
from agent_tool_engine.agent import (
    AgentInput,
    AgentLoop,
    AgentLoopConfig,
    AgentOutput,
    CancellationToken,
)
from agent_tool_engine.config import EngineConfig
from agent_tool_engine.context import build_system_prompt, select_tools
from agent_tool_engine.errors import MissingAPIKeyError
from agent_tool_engine.events import AgentCallbacks
from agent_tool_engine.http_client import HttpClient, HttpxHttpClient
from agent_tool_engine.logging import get_logger
from agent_tool_engine.memory import WorkspaceMemory
from agent_tool_engine.models import Message, ToolDefinition
from agent_tool_engine.providers import ChatProvider, create_provider
from agent_tool_engine.secrets import JsonFileSecretStore, SecretStore
from agent_tool_engine.skills import SkillCatalog
from agent_tool_engine.tools import register_builtin_tools
from agent_tool_engine.tools.registry import ToolRegistry

logger = get_logger("host")


class AgentHost:
    """
    Entry point for hosting applications.

    Example:
        host = AgentHost(EngineConfig.from_yaml(Path("agent.yaml")))
        host.registry.register("fetch_quote", quote_def, fetch_quote, ["market"])
        output = await host.send_message("How is AAPL doing?")
        print(output.content)

    Domain tools are registered by the application on :attr:`registry`;
    :meth:`initialize` adds the built-in tools and installed adapters.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        registry: ToolRegistry | None = None,
        secrets: SecretStore | None = None,
        provider: ChatProvider | None = None,
        http: HttpClient | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.registry = registry or ToolRegistry()
        self.secrets: SecretStore = secrets or JsonFileSecretStore(self.config.resolved_secrets_path)
        self.catalog = SkillCatalog(self.config.workspace)
        self.memory = WorkspaceMemory(self.config.workspace)

        self._owns_http = http is None
        self.http: HttpClient = http or HttpxHttpClient()
        self.adapters = AdapterEngine(
            self.registry,
            self.secrets,
            self.http,
            AdapterStore(self.config.workspace / "adapters"),
            timeout_seconds=self.config.adapter_timeout_seconds,
            on_change=self.catalog.invalidate,
        )

        self._provider = provider
        self._owns_provider = provider is None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> list[str]:
        """
        Register built-in tools and load installed adapters.

        Runs once; later calls return ``[]``. Returns the loaded adapter ids.
        """
        if self._initialized:
            return []
        register_builtin_tools(self.registry, self.secrets, self.adapters, self.memory)
        loaded = self.adapters.load_all()
        self._initialized = True
        logger.info("Host initialised: %d tools, %d adapters", len(self.registry), len(loaded))
        return loaded

    @property
    def provider(self) -> ChatProvider:
        if self._provider is None:
            if not self.config.model.api_key:
                raise MissingAPIKeyError(
                    "No model API key configured; set OPENAI_API_KEY or model.api_key"
                )
            self._provider = create_provider(self.config.model)
        return self._provider

    def select_tools(self, user_input: str) -> list[ToolDefinition]:
        return select_tools(self.registry, self.catalog.active_skill_names(user_input))

    async def send_message(
        self,
        user_input: str,
        history: Sequence[Message] = (),
        callbacks: AgentCallbacks | None = None,
        cancel: CancellationToken | None = None,
    ) -> AgentOutput:
        """Run one user turn through the agent loop."""
        provider = self.provider
        self.initialize()

        loop = AgentLoop(
            provider,
            self.registry,
            AgentLoopConfig(
                max_tool_rounds=self.config.max_tool_rounds,
                temperature=self.config.temperature,
            ),
        )
        agent_input = AgentInput(
            messages=[*history, Message.user(user_input)],
            system_prompt=build_system_prompt(
                self.config.workspace, user_input, self.catalog, self.memory
            ),
            tools=self.select_tools(user_input),
        )
        return await loop.run(agent_input, callbacks=callbacks, cancel=cancel)

    async def aclose(self) -> None:
        if self._owns_provider and self._provider is not None:
            await self._provider.aclose()
        if self._owns_http and isinstance(self.http, HttpxHttpClient):
            await self.http.aclose()
