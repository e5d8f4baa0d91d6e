"""
Adapter config models.

An adapter is a JSON document bundling HTTP-backed tools:

```json
{
  "adapter": {"id": "coingecko", "name": "CoinGecko", "version": 1,
              "base_url": "https://api.coingecko.com/api/v3"},
  "tools": [{
    "name": "crypto_price",
    "description": "Get the spot price of a coin",
    "skill": "crypto",
    "parameters": {"type": "object",
                   "properties": {"coin": {"type": "string"}},
                   "required": ["coin"]},
    "request": {"method": "GET",
                "url": "{{base_url}}/simple/price?ids={{args.coin}}&vs_currencies=usd",
                "headers": {"x-cg-api-key": "{{secrets.COINGECKO_KEY}}"}},
    "response": {"data_path": "data", "limit": 10},
    "secrets_needed": ["COINGECKO_KEY"]
  }]
}
```
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from agent_tool_engine.errors import AdapterConfigError
from agent_tool_engine.models import ToolDefinition


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise AdapterConfigError(f"{where}: missing required field '{key}'")
    return value


@dataclass
class AdapterInfo:
    id: str
    name: str
    version: Any = 1
    base_url: str = ""


@dataclass
class AdapterRequest:
    """Templated HTTP request. Any string inside may contain template tokens."""

    method: str
    url: str
    headers: dict[str, Any] | None = None
    body: Any = None


@dataclass
class AdapterResponseSpec:
    data_path: str | None = None
    limit: int | None = None


@dataclass
class AdapterToolConfig:
    name: str
    description: str
    request: AdapterRequest
    skill: str = ""
    parameters: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    response: AdapterResponseSpec = field(default_factory=AdapterResponseSpec)
    secrets_needed: list[str] = field(default_factory=list)

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], where: str = "tool") -> AdapterToolConfig:
        if not isinstance(data, dict):
            raise AdapterConfigError(f"{where}: expected an object")
        name = _require(data, "name", where)
        where = f"{where} '{name}'"

        request = data.get("request")
        if not isinstance(request, dict):
            raise AdapterConfigError(f"{where}: missing 'request' object")
        headers = request.get("headers")
        if headers is not None and not isinstance(headers, dict):
            raise AdapterConfigError(f"{where}: 'request.headers' must be an object")

        response = data.get("response") or {}
        if not isinstance(response, dict):
            raise AdapterConfigError(f"{where}: 'response' must be an object")
        limit = response.get("limit")
        if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 0):
            raise AdapterConfigError(f"{where}: 'response.limit' must be a non-negative integer")

        secrets = data.get("secrets_needed") or []
        if not isinstance(secrets, list) or not all(isinstance(s, str) for s in secrets):
            raise AdapterConfigError(f"{where}: 'secrets_needed' must be a list of strings")

        return cls(
            name=name,
            description=data.get("description", ""),
            skill=data.get("skill") or "",
            parameters=data.get("parameters") or {"type": "object", "properties": {}},
            request=AdapterRequest(
                method=str(_require(request, "method", where)).upper(),
                url=_require(request, "url", where),
                headers=headers,
                body=request.get("body"),
            ),
            response=AdapterResponseSpec(
                data_path=response.get("data_path") or None,
                limit=limit,
            ),
            secrets_needed=list(secrets),
        )


@dataclass
class AdapterConfig:
    adapter: AdapterInfo
    tools: list[AdapterToolConfig] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.adapter.id

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdapterConfig:
        """Validate and build a config. Raises AdapterConfigError."""
        if not isinstance(data, dict):
            raise AdapterConfigError("adapter config must be a JSON object")
        info = data.get("adapter")
        if not isinstance(info, dict):
            raise AdapterConfigError("missing 'adapter' object")
        adapter_id = _require(info, "id", "adapter")

        tools = data.get("tools")
        if not isinstance(tools, list):
            raise AdapterConfigError(f"adapter '{adapter_id}': 'tools' must be a list")

        return cls(
            adapter=AdapterInfo(
                id=str(adapter_id),
                name=info.get("name") or str(adapter_id),
                version=info.get("version", 1),
                base_url=info.get("base_url") or "",
            ),
            tools=[
                AdapterToolConfig.from_dict(t, where=f"adapter '{adapter_id}' tool #{i}")
                for i, t in enumerate(tools)
            ],
        )

    @classmethod
    def from_json(cls, content: str) -> AdapterConfig:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise AdapterConfigError(f"invalid adapter JSON: {e}") from e
        return cls.from_dict(data)
