"""Shared pytest fixtures for agent-tool-engine tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path
from textwrap import dedent
from typing import Any

import pytest

from agent_tool_engine.adapters import AdapterEngine, AdapterStore
from agent_tool_engine.events import StreamChunk
from agent_tool_engine.http_client import HttpResponse
from agent_tool_engine.models import FunctionCall, Message, ToolCall, ToolDefinition
from agent_tool_engine.providers.base import ChatProvider
from agent_tool_engine.secrets import InMemorySecretStore
from agent_tool_engine.tools.registry import ToolRegistry


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------


def sse(payload: dict[str, Any] | str) -> bytes:
    """Encode one SSE data line."""
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {data}\n\n".encode()


def text_event(text: str, finish_reason: str | None = None) -> dict[str, Any]:
    return {"choices": [{"delta": {"content": text}, "finish_reason": finish_reason}]}


def tool_delta_event(
    index: int,
    call_id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
) -> dict[str, Any]:
    entry: dict[str, Any] = {"index": index}
    function: dict[str, Any] = {}
    if call_id:
        entry["id"] = call_id
        entry["type"] = "function"
    if name:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    entry["function"] = function
    return {"choices": [{"delta": {"tool_calls": [entry]}, "finish_reason": None}]}


def finish_event(reason: str) -> dict[str, Any]:
    return {"choices": [{"delta": {}, "finish_reason": reason}]}


def make_call(call_id: str, name: str, args: dict[str, Any] | str | None = None) -> ToolCall:
    arguments = args if isinstance(args, str) else json.dumps(args or {})
    return ToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class ScriptedProvider(ChatProvider):
    """Provider replaying one scripted list of chunks per call."""

    def __init__(self, rounds: list[list[StreamChunk]]) -> None:
        self.rounds = list(rounds)
        self.calls: list[dict[str, Any]] = []
        self.closed_streams = 0

    async def chat(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        temperature: float | None = None,
        tools: list[ToolDefinition] | None = None,
        tool_choice: Any = None,
    ) -> AsyncIterator[StreamChunk]:
        self.calls.append(
            {
                "messages": list(messages),
                "system_prompt": system_prompt,
                "temperature": temperature,
                "tools": list(tools or []),
                "tool_choice": tool_choice,
            }
        )
        chunks = self.rounds.pop(0) if self.rounds else [StreamChunk.done()]
        try:
            for chunk in chunks:
                yield chunk
        finally:
            self.closed_streams += 1


def tool_round(*calls: ToolCall, text: str = "") -> list[StreamChunk]:
    """A provider round that ends with tool calls."""
    chunks: list[StreamChunk] = []
    if text:
        chunks.append(StreamChunk.text(text))
    chunks.append(StreamChunk(type="tool_call_complete", tool_calls=list(calls)))
    chunks.append(StreamChunk.done())
    return chunks


def text_round(*texts: str) -> list[StreamChunk]:
    """A provider round with only text."""
    return [*(StreamChunk.text(t) for t in texts), StreamChunk.done()]


class FakeHttpClient:
    """Records requests and replies with canned responses."""

    def __init__(self, responses: list[HttpResponse | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[dict[str, Any]] = []

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
        timeout_seconds: float = 30.0,
    ) -> HttpResponse:
        self.requests.append(
            {
                "method": method,
                "url": url,
                "headers": headers,
                "body": body,
                "timeout_seconds": timeout_seconds,
            }
        )
        if not self.responses:
            return HttpResponse(status=200, body="{}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def secrets() -> InMemorySecretStore:
    return InMemorySecretStore()


@pytest.fixture
def http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def adapter_store(tmp_path: Path) -> AdapterStore:
    return AdapterStore(tmp_path / "adapters")


@pytest.fixture
def adapter_engine(
    registry: ToolRegistry,
    secrets: InMemorySecretStore,
    http: FakeHttpClient,
    adapter_store: AdapterStore,
) -> AdapterEngine:
    return AdapterEngine(registry, secrets, http, adapter_store)


@pytest.fixture
def crypto_adapter() -> dict[str, Any]:
    """A one-tool adapter config needing a secret."""
    return {
        "adapter": {
            "id": "coingecko",
            "name": "CoinGecko",
            "version": 1,
            "base_url": "https://api.coingecko.com/api/v3",
        },
        "tools": [
            {
                "name": "crypto_price",
                "description": "Get the spot price of a coin",
                "skill": "crypto",
                "parameters": {
                    "type": "object",
                    "properties": {"coin": {"type": "string"}},
                    "required": ["coin"],
                },
                "request": {
                    "method": "GET",
                    "url": "{{base_url}}/simple/price?ids={{args.coin}}",
                    "headers": {"x-cg-api-key": "{{secrets.CG_KEY}}"},
                },
                "response": {"data_path": "data", "limit": 2},
                "secrets_needed": ["CG_KEY"],
            }
        ],
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A workspace with a persona, a user profile and two skills."""
    ws = tmp_path / "workspace"
    (ws / "skills" / "_always").mkdir(parents=True)
    (ws / "skills" / "on-demand").mkdir(parents=True)

    (ws / "SOUL.md").write_text("You are a test assistant.\n")
    (ws / "USER.md").write_text("# User Profile\n\nPrefers tech stocks.\n")

    (ws / "skills" / "_always" / "basics.md").write_text(
        dedent("""\
            ---
            name: basics
            description: Always-on guidance
            ---
            Answer briefly.
        """)
    )
    (ws / "skills" / "on-demand" / "crypto.md").write_text(
        dedent("""\
            ---
            name: crypto
            description: Crypto prices
            keywords: [bitcoin, BTC, crypto]
            tools: [crypto_price]
            ---
            Use crypto_price for coin prices.
        """)
    )
    return ws
