"""
OpenAI-compatible streaming provider.

Works with OpenAI, DeepSeek, Zhipu GLM and any endpoint that speaks the
``/chat/completions`` streaming protocol. Requests go out over ``httpx`` and
the raw SSE bytes are decoded by :mod:`agent_tool_engine.streaming`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx

from agent_tool_engine.config import ModelConfig
from agent_tool_engine.events import StreamChunk
from agent_tool_engine.logging import get_logger
from agent_tool_engine.models import Message, MessageContent, ToolDefinition, content_text
from agent_tool_engine.providers.base import ChatProvider, ToolChoice
from agent_tool_engine.streaming import decode_stream

logger = get_logger("providers.openai_compatible")


class OpenAICompatibleProvider(ChatProvider):
    """
    Streaming provider for OpenAI-compatible chat endpoints.

    Example:
        provider = OpenAICompatibleProvider(ModelConfig.from_env())

        async for chunk in provider.chat([Message.user("Hi")]):
            if chunk.type == "text":
                print(chunk.content, end="")
    """

    def __init__(
        self,
        config: ModelConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            # trust_env=False keeps proxy settings from the environment out of the way
            self._client = httpx.AsyncClient(
                trust_env=False,
                timeout=httpx.Timeout(self.config.timeout_seconds, connect=30.0),
            )
        return self._client

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def build_payload(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        temperature: float | None = None,
        tools: list[ToolDefinition] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> dict[str, Any]:
        """Build the JSON body for a streaming chat request."""
        wire_messages: list[dict[str, Any]] = []
        if system_prompt:
            wire_messages.append({"role": "system", "content": system_prompt})
        for msg in messages:
            wire_messages.append(self.format_message(msg))

        payload: dict[str, Any] = {
            "model": self.config.model,
            "stream": True,
            "messages": wire_messages,
        }
        if self.config.max_tokens:
            payload["max_tokens"] = self.config.max_tokens
        if temperature is not None:
            payload["temperature"] = temperature
        if tools:
            payload["tools"] = [t.to_openai() for t in tools]
            if tool_choice:
                payload["tool_choice"] = tool_choice
        return payload

    def format_message(self, msg: Message) -> dict[str, Any]:
        """Format a single message for the wire."""
        if msg.role == "tool":
            return {
                "role": "tool",
                "content": content_text(msg.content),
                "tool_call_id": msg.tool_call_id,
            }
        if msg.role == "assistant" and msg.tool_calls:
            return {
                "role": "assistant",
                "content": self.format_content(msg.content) if msg.content is not None else None,
                "tool_calls": [tc.to_dict() for tc in msg.tool_calls],
            }
        return {"role": msg.role, "content": self.format_content(msg.content)}

    def format_content(self, content: MessageContent) -> str | list[dict[str, Any]] | None:
        """
        Format message content.

        Models without vision support get only the text parts, newline-joined;
        image parts are dropped rather than failing the request.
        """
        if content is None or isinstance(content, str):
            return content

        if not self.config.supports_vision:
            return content_text(content)

        parts: list[dict[str, Any]] = []
        for part in content:
            if part.get("type") == "text":
                parts.append({"type": "text", "text": part.get("text", "")})
            elif part.get("type") == "image_url":
                image = part.get("image_url") or {}
                parts.append({"type": "image_url", "image_url": {"url": image.get("url", "")}})
            else:
                parts.append(part)
        return parts

    async def chat(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        temperature: float | None = None,
        tools: list[ToolDefinition] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a chat completion as chunks."""
        payload = self.build_payload(messages, system_prompt, temperature, tools, tool_choice)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

        logger.debug(
            "POST %s model=%s messages=%d tools=%d",
            self.endpoint,
            self.config.model,
            len(payload["messages"]),
            len(payload.get("tools", [])),
        )

        streamed = False
        try:
            async with self.client.stream(
                "POST", self.endpoint, json=payload, headers=headers
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    error = f"API error {response.status_code}: {body}"
                else:
                    streamed = True
                    async for chunk in decode_stream(response.aiter_bytes()):
                        yield chunk
                    return
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            if streamed:
                # decode_stream already reported completion; only closing failed
                logger.debug("Error closing provider stream: %s", e)
                return
            error = f"Network error: {e}"

        logger.warning("Provider request failed: %s", error)
        yield StreamChunk.error(error)
        yield StreamChunk.done()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
