"""
Adapter engine: compiles declarative adapter configs into registry tools.

Each adapter tool becomes an executor closure over its request template and
the adapter's ``base_url``. At call time the executor:

1. resolves ``secrets_needed`` (any missing key aborts with an error result),
2. resolves the request templates,
3. calls the HTTP primitive,
4. maps status >= 400 to an error result with a body preview,
5. parses JSON (falling back to raw text), applies ``data_path`` and
   ``limit``,
6. returns the JSON-encoded result.

Tool names are global. Registering a tool whose name is already owned by
another adapter moves ownership to the new adapter, so uninstalling the old
one never removes the new tool. Installing or removing an adapter while an
agent loop is mid-dispatch of one of its tools is not guarded: the executor
already fetched runs to completion.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from agent_tool_engine.adapters.models import AdapterConfig, AdapterToolConfig
from agent_tool_engine.adapters.store import AdapterStore
from agent_tool_engine.adapters.template import TemplateContext, extract_by_path, resolve_template
from agent_tool_engine.http_client import DEFAULT_TIMEOUT_SECONDS, HttpClient
from agent_tool_engine.logging import get_logger
from agent_tool_engine.secrets import SecretStore
from agent_tool_engine.tools.registry import ToolExecutor, ToolRegistry

logger = get_logger("adapters")

ERROR_PREVIEW_CHARS = 500


def _error(message: str, **extra: Any) -> str:
    return json.dumps({"error": message, **extra}, ensure_ascii=False)


@dataclass
class InstalledAdapter:
    """Result of registering an adapter."""

    id: str
    tools: list[str]
    overwritten: list[str] = field(default_factory=list)
    """Names that replaced a tool registered by something else."""


class AdapterEngine:
    """
    Installs and removes adapter tools in a :class:`ToolRegistry`.

    Example:
        engine = AdapterEngine(registry, secrets, HttpxHttpClient(), AdapterStore(ws / "adapters"))
        engine.load_all()                    # at startup
        engine.install_adapter(config_dict)  # at runtime
        engine.uninstall_adapter("coingecko")
    """

    def __init__(
        self,
        registry: ToolRegistry,
        secrets: SecretStore,
        http: HttpClient,
        store: AdapterStore,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.registry = registry
        self.secrets = secrets
        self.http = http
        self.store = store
        self.timeout_seconds = timeout_seconds
        self.on_change = on_change
        self._adapter_tools: dict[str, list[str]] = {}
        self._owners: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Compile
    # ------------------------------------------------------------------

    def compile_tool(self, tool: AdapterToolConfig, base_url: str) -> ToolExecutor:
        """Build the executor closure for one adapter tool."""
        request = tool.request
        response_spec = tool.response

        async def execute(args: dict[str, Any]) -> str:
            secrets: dict[str, str] = {}
            for key in tool.secrets_needed:
                value = self.secrets.get(key)
                if not value:
                    logger.warning("Tool %s is missing secret %s", tool.name, key)
                    return _error(
                        f"missing required secret: {key}; set it with manage_api_secret first"
                    )
                secrets[key] = value

            context = TemplateContext(args=args, secrets=secrets, base_url=base_url)
            url = str(resolve_template(request.url, context))
            headers = None
            if request.headers:
                resolved = resolve_template(request.headers, context)
                headers = {str(k): str(v) for k, v in resolved.items()}
            body = resolve_template(request.body, context) if request.body is not None else None

            try:
                response = await self.http.request(
                    request.method,
                    url,
                    headers=headers,
                    body=body,
                    timeout_seconds=self.timeout_seconds,
                )
            except Exception as e:
                logger.warning("Adapter tool %s request failed: %s", tool.name, e)
                return _error(f"request failed: {e}")

            if response.status >= 400:
                return _error(f"HTTP {response.status}", body=response.body[:ERROR_PREVIEW_CHARS])

            try:
                data: Any = json.loads(response.body)
            except json.JSONDecodeError:
                data = response.body

            if response_spec.data_path:
                data = extract_by_path(data, response_spec.data_path)
            if response_spec.limit and isinstance(data, list):
                data = data[: response_spec.limit]

            return json.dumps(data, ensure_ascii=False)

        execute.__name__ = f"adapter_tool_{tool.name}"
        return execute

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register_adapter(self, adapter_id: str) -> InstalledAdapter:
        """Read an adapter config from the store and register its tools."""
        config = AdapterConfig.from_json(self.store.read(adapter_id))
        return self.register_config(config, adapter_id=adapter_id)

    def register_config(
        self,
        config: AdapterConfig,
        adapter_id: str | None = None,
    ) -> InstalledAdapter:
        """Compile and register every tool of ``config`` under one adapter id."""
        adapter_id = adapter_id or config.id
        if adapter_id in self._adapter_tools:
            self.unregister_adapter(adapter_id)

        names: list[str] = []
        overwritten: list[str] = []
        for tool in config.tools:
            previous_owner = self._owners.get(tool.name)
            if previous_owner is not None and previous_owner != adapter_id:
                logger.warning(
                    "Adapter '%s' tool '%s' replaces the one from adapter '%s'",
                    adapter_id,
                    tool.name,
                    previous_owner,
                )
                self._adapter_tools[previous_owner].remove(tool.name)
                overwritten.append(tool.name)
            elif previous_owner is None and self.registry.has(tool.name):
                overwritten.append(tool.name)

            executor = self.compile_tool(tool, config.adapter.base_url)
            self.registry.register(
                tool.name,
                tool.definition(),
                executor,
                [tool.skill] if tool.skill else [],
            )
            self._owners[tool.name] = adapter_id
            names.append(tool.name)

        self._adapter_tools[adapter_id] = names
        logger.info("Registered adapter %s (%d tools)", adapter_id, len(names))
        self._changed()
        return InstalledAdapter(id=adapter_id, tools=list(names), overwritten=overwritten)

    def unregister_adapter(self, adapter_id: str) -> bool:
        """Remove exactly the tools registered by ``adapter_id``."""
        names = self._adapter_tools.pop(adapter_id, None)
        if names is None:
            return False
        for name in names:
            self.registry.unregister(name)
            self._owners.pop(name, None)
        logger.info("Unregistered adapter %s", adapter_id)
        self._changed()
        return True

    def load_all(self) -> list[str]:
        """
        Register every adapter found in the store.

        Each adapter loads independently; a broken one is logged and
        skipped. Returns the ids that loaded.
        """
        loaded: list[str] = []
        for adapter_id in self.store.list_ids():
            try:
                self.register_adapter(adapter_id)
            except Exception as e:
                logger.warning("Failed to load adapter %s: %s", adapter_id, e)
                continue
            loaded.append(adapter_id)
        return loaded

    def install_adapter(self, data: dict[str, Any] | str) -> InstalledAdapter:
        """Validate, persist and register an adapter config."""
        if isinstance(data, str):
            config = AdapterConfig.from_json(data)
            data = json.loads(data)
        else:
            config = AdapterConfig.from_dict(data)
        self.store.write(config.id, data)
        return self.register_config(config)

    def uninstall_adapter(self, adapter_id: str) -> bool:
        """Unregister an adapter and delete its config file."""
        removed = self.unregister_adapter(adapter_id)
        deleted = self.store.delete(adapter_id)
        return removed or deleted

    def registered_adapters(self) -> list[dict[str, Any]]:
        return [
            {"id": adapter_id, "tools": list(names)}
            for adapter_id, names in self._adapter_tools.items()
        ]

    def tools_for(self, adapter_id: str) -> list[str]:
        return list(self._adapter_tools.get(adapter_id, []))

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
