"""
Base chat provider interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from agent_tool_engine.events import StreamChunk
from agent_tool_engine.models import Message, ToolDefinition

ToolChoice = str | dict[str, Any]


class ChatProvider(ABC):
    """
    Abstract base class for streaming chat providers.

    A provider turns internal messages and tool definitions into a wire
    request and exposes the response as a lazy sequence of
    :class:`StreamChunk` objects. Implementations must not raise from inside
    the stream: transport failures are reported as a single ``error`` chunk,
    and every stream ends with exactly one ``done`` chunk.

    Example implementation for a canned provider:

        class EchoProvider(ChatProvider):
            async def chat(self, messages, system_prompt=None, **kwargs):
                yield StreamChunk.text(messages[-1].text)
                yield StreamChunk.done()
    """

    @abstractmethod
    def chat(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        temperature: float | None = None,
        tools: list[ToolDefinition] | None = None,
        tool_choice: ToolChoice | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat completion.

        Args:
            messages: Conversation history
            system_prompt: Prepended as a system message when given
            temperature: Sampling temperature
            tools: Tool definitions offered to the model
            tool_choice: ``"auto"``, ``"none"`` or a forced function

        Yields:
            StreamChunk objects, ending with ``done``
        """
        ...

    async def aclose(self) -> None:
        """Release any network resources held by the provider."""
        pass
