"""Tests for the OpenAI-compatible streaming provider."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from agent_tool_engine.config import ModelConfig
from agent_tool_engine.events import DONE, ERROR, TEXT, TOOL_CALL_COMPLETE
from agent_tool_engine.models import Message, ToolDefinition
from agent_tool_engine.providers import OpenAICompatibleProvider, create_provider
from conftest import finish_event, make_call, sse, text_event, tool_delta_event


def _provider(
    handler: Any,
    supports_vision: bool = False,
    max_tokens: int | None = None,
) -> OpenAICompatibleProvider:
    config = ModelConfig(
        api_key="sk-test",
        base_url="https://llm.example.com/v1/",
        model="test-model",
        supports_vision=supports_vision,
        max_tokens=max_tokens,
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleProvider(config, client=client)


def _image_message() -> Message:
    return Message.user(
        [
            {"type": "text", "text": "What is on this chart?"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
            {"type": "text", "text": "Be brief."},
        ]
    )


class TestBuildPayload:
    def test_system_prompt_comes_first(self) -> None:
        provider = _provider(lambda r: httpx.Response(200))
        payload = provider.build_payload([Message.user("hi")], system_prompt="Be kind.")
        assert payload["messages"][0] == {"role": "system", "content": "Be kind."}
        assert payload["messages"][1] == {"role": "user", "content": "hi"}
        assert payload["stream"] is True
        assert payload["model"] == "test-model"

    def test_no_system_message_without_prompt(self) -> None:
        provider = _provider(lambda r: httpx.Response(200))
        payload = provider.build_payload([Message.user("hi")])
        assert [m["role"] for m in payload["messages"]] == ["user"]

    def test_tools_and_tool_choice_only_when_tools_present(self) -> None:
        provider = _provider(lambda r: httpx.Response(200))
        tool = ToolDefinition(name="lookup", description="Look up", parameters={"type": "object"})

        with_tools = provider.build_payload([Message.user("x")], tools=[tool], tool_choice="auto")
        assert with_tools["tools"] == [tool.to_openai()]
        assert with_tools["tool_choice"] == "auto"

        without = provider.build_payload([Message.user("x")], tools=[], tool_choice="auto")
        assert "tools" not in without
        assert "tool_choice" not in without

    def test_max_tokens_and_temperature(self) -> None:
        provider = _provider(lambda r: httpx.Response(200), max_tokens=256)
        payload = provider.build_payload([Message.user("x")], temperature=0.2)
        assert payload["max_tokens"] == 256
        assert payload["temperature"] == 0.2

    def test_tool_and_assistant_messages(self) -> None:
        provider = _provider(lambda r: httpx.Response(200))
        call = make_call("c1", "lookup", {"q": "AAPL"})
        payload = provider.build_payload(
            [
                Message.assistant(None, [call]),
                Message.tool("c1", '{"price": 1}'),
            ]
        )
        assistant, tool = payload["messages"]
        assert assistant == {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": "c1",
                    "type": "function",
                    "function": {"name": "lookup", "arguments": '{"q": "AAPL"}'},
                }
            ],
        }
        assert tool == {"role": "tool", "content": '{"price": 1}', "tool_call_id": "c1"}

    def test_assistant_keeps_partial_text_with_tool_calls(self) -> None:
        provider = _provider(lambda r: httpx.Response(200))
        msg = Message.assistant("Let me check.", [make_call("c1", "lookup")])
        assert provider.format_message(msg)["content"] == "Let me check."

    def test_images_dropped_for_non_vision_model(self) -> None:
        provider = _provider(lambda r: httpx.Response(200), supports_vision=False)
        payload = provider.build_payload([_image_message()])
        assert payload["messages"][0]["content"] == "What is on this chart?\nBe brief."

    def test_images_kept_for_vision_model(self) -> None:
        provider = _provider(lambda r: httpx.Response(200), supports_vision=True)
        payload = provider.build_payload([_image_message()])
        content = payload["messages"][0]["content"]
        assert isinstance(content, list)
        assert content[1] == {
            "type": "image_url",
            "image_url": {"url": "data:image/png;base64,AAAA"},
        }


class TestChat:
    @pytest.mark.asyncio
    async def test_streams_text_and_tool_calls(self) -> None:
        captured: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("Authorization")
            captured["body"] = json.loads(request.content)
            body = b"".join(
                [
                    sse(text_event("Checking")),
                    sse(tool_delta_event(0, "c1", "lookup", '{"q":')),
                    sse(tool_delta_event(0, arguments='"AAPL"}')),
                    sse(finish_event("tool_calls")),
                    b"data: [DONE]\n\n",
                ]
            )
            return httpx.Response(200, content=body)

        provider = _provider(handler)
        chunks = [c async for c in provider.chat([Message.user("AAPL?")], system_prompt="sys")]

        assert captured["url"] == "https://llm.example.com/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"]["messages"][0]["role"] == "system"

        types = [c.type for c in chunks]
        assert types[0] == TEXT
        assert TOOL_CALL_COMPLETE in types
        assert types[-1] == DONE
        assert types.count(DONE) == 1

        complete = next(c for c in chunks if c.type == TOOL_CALL_COMPLETE)
        assert complete.tool_calls[0].parse_arguments() == {"q": "AAPL"}

    @pytest.mark.asyncio
    async def test_non_2xx_yields_api_error_then_done(self) -> None:
        provider = _provider(lambda r: httpx.Response(401, text="invalid key"))
        chunks = [c async for c in provider.chat([Message.user("hi")])]

        assert [c.type for c in chunks] == [ERROR, DONE]
        assert chunks[0].content == "API error 401: invalid key"

    @pytest.mark.asyncio
    async def test_network_failure_yields_network_error_then_done(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = _provider(handler)
        chunks = [c async for c in provider.chat([Message.user("hi")])]

        assert [c.type for c in chunks] == [ERROR, DONE]
        assert chunks[0].content.startswith("Network error:")
        assert "connection refused" in chunks[0].content


class TestCreateProvider:
    def test_factory_returns_openai_compatible(self) -> None:
        provider = create_provider(ModelConfig(api_key="k"))
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.endpoint == "https://api.openai.com/v1/chat/completions"
