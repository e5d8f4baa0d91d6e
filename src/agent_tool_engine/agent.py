"""
Multi-round agent loop with streamed output and sequential tool dispatch.

One :meth:`AgentLoop.run` call moves through:

    Requesting → Streaming → (ToolDispatch)* → Completed | Cancelled

Each round streams one provider response. Text is forwarded to the caller as
it arrives; if the response ends with tool calls they are executed one at a
time, in order, and their results appended to the history before the next
round. The loop ends on a round without tool calls, on a task switch, on
cancellation, or when the round budget runs out.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

from agent_tool_engine.errors import AgentCancelledError, ProviderError
from agent_tool_engine.events import ERROR, TEXT, TOOL_CALL_COMPLETE, AgentCallbacks
from agent_tool_engine.logging import get_logger
from agent_tool_engine.models import Message, ToolCall, ToolDefinition, ToolResult
from agent_tool_engine.providers.base import ChatProvider
from agent_tool_engine.tools.registry import ToolRegistry

logger = get_logger("agent")

SCREENSHOT_NOTE = "[System] Browser page screenshot:"
DATA_IMAGE_PREFIX = "data:image/"


@dataclass
class AgentLoopConfig:
    """Configuration for one agent loop."""

    max_tool_rounds: int = 10  # Max provider calls per run
    temperature: float = 0.7


@dataclass
class AgentInput:
    """Conversation, system prompt and tools for one run."""

    messages: list[Message]
    system_prompt: str = ""
    tools: list[ToolDefinition] = field(default_factory=list)
    config: AgentLoopConfig | None = None  # Overrides the loop's config


@dataclass
class AgentOutput:
    """Result of one run."""

    content: str
    messages: list[Message]
    switch_to: str | None = None  # Task id or "lobby"
    rounds: int = 0  # Provider calls made
    cancelled: bool = False


class CancellationToken:
    """
    Cooperative cancellation signal.

    The loop checks it at round entry, after every streamed chunk and before
    each tool dispatch. Effects of tool calls that already completed are not
    rolled back.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class _RoundState:
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


class AgentLoop:
    """
    Runs provider rounds and tool dispatch until the model is done.

    Example:
        loop = AgentLoop(provider, registry)
        output = await loop.run(
            AgentInput(
                messages=[Message.user("What's AAPL at?")],
                system_prompt="You are a market assistant.",
                tools=registry.get_all_definitions(),
            ),
            callbacks=AgentCallbacks(on_stream_chunk=lambda t: print(t, end="")),
        )
        print(output.content)

    Provider errors abort the run with :class:`ProviderError`; they are not
    retried here. Tool failures never abort the run: they go back to the
    model as ``{"error": ...}`` tool results.
    """

    def __init__(
        self,
        provider: ChatProvider,
        registry: ToolRegistry,
        config: AgentLoopConfig | None = None,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.config = config or AgentLoopConfig()

    async def run(
        self,
        agent_input: AgentInput,
        callbacks: AgentCallbacks | None = None,
        cancel: CancellationToken | None = None,
    ) -> AgentOutput:
        config = agent_input.config or self.config
        callbacks = callbacks or AgentCallbacks()
        messages = list(agent_input.messages)

        final_content = ""
        switch_to: str | None = None
        rounds = 0
        state = _RoundState()

        try:
            for round_index in range(config.max_tool_rounds):
                self._check_cancel(cancel)

                rounds += 1
                state = _RoundState()
                logger.debug("Round %d: %d messages", round_index, len(messages))
                await self._stream_round(agent_input, messages, config, state, callbacks, cancel)

                if not state.tool_calls:
                    final_content = state.content
                    break

                messages.append(Message.assistant(state.content or None, state.tool_calls))
                switch_to = await self._dispatch_tools(state.tool_calls, messages, callbacks, cancel)
                if switch_to is not None:
                    logger.debug("Switching to task %s", switch_to)
                    final_content = state.content
                    break
            else:
                logger.warning(
                    "Tool round budget (%d) exhausted; returning last final content",
                    config.max_tool_rounds,
                )

        except AgentCancelledError:
            logger.debug("Agent loop cancelled after %d round(s)", rounds)
            return AgentOutput(
                content=state.content,
                messages=messages,
                rounds=rounds,
                cancelled=True,
            )

        return AgentOutput(
            content=final_content,
            messages=messages,
            switch_to=switch_to,
            rounds=rounds,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check_cancel(cancel: CancellationToken | None) -> None:
        if cancel is not None and cancel.is_cancelled:
            raise AgentCancelledError("Agent loop cancelled")

    async def _stream_round(
        self,
        agent_input: AgentInput,
        messages: list[Message],
        config: AgentLoopConfig,
        state: _RoundState,
        callbacks: AgentCallbacks,
        cancel: CancellationToken | None,
    ) -> None:
        stream = self.provider.chat(
            messages,
            system_prompt=agent_input.system_prompt or None,
            temperature=config.temperature,
            tools=agent_input.tools,
            tool_choice="auto",
        )
        try:
            async for chunk in stream:
                if chunk.type == TEXT:
                    state.content += chunk.content
                    await callbacks.emit("on_stream_chunk", chunk.content)
                elif chunk.type == TOOL_CALL_COMPLETE and chunk.tool_calls:
                    state.tool_calls = list(chunk.tool_calls)
                elif chunk.type == ERROR:
                    await callbacks.emit("on_error", chunk.content)
                    raise ProviderError(chunk.content)
                self._check_cancel(cancel)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _dispatch_tools(
        self,
        tool_calls: list[ToolCall],
        messages: list[Message],
        callbacks: AgentCallbacks,
        cancel: CancellationToken | None,
    ) -> str | None:
        """
        Execute tool calls sequentially and append their results.

        Returns the switch target if a tool requested a task switch. Every
        call gets exactly one tool message: calls skipped by a task switch or
        by cancellation get an error result so the history stays paired.
        A screenshot stripped from a result follows its tool message as a
        user message carrying the image.
        """
        for position, call in enumerate(tool_calls):
            if cancel is not None and cancel.is_cancelled:
                self._skip_remaining(tool_calls[position:], messages, "cancelled")
                raise AgentCancelledError("Agent loop cancelled")

            args = call.parse_arguments()
            await callbacks.emit("on_tool_start", call, args)
            result = await self.registry.execute_tool(call)
            await callbacks.emit("on_tool_end", call.id, result.content)

            if result.is_switch:
                messages.append(Message.tool(call.id, result.content))
                self._skip_remaining(tool_calls[position + 1:], messages, "skipped: task switched")
                return result.target

            content, image = _strip_image(result)
            messages.append(Message.tool(call.id, content))
            if image is not None:
                messages.append(
                    Message.user(
                        [
                            {"type": "text", "text": SCREENSHOT_NOTE},
                            {"type": "image_url", "image_url": {"url": image}},
                        ]
                    )
                )

        return None

    @staticmethod
    def _skip_remaining(calls: list[ToolCall], messages: list[Message], reason: str) -> None:
        for call in calls:
            messages.append(Message.tool(call.id, ToolResult.error(reason).content))


def _strip_image(result: ToolResult) -> tuple[str, str | None]:
    """
    Split a ``data:image/...`` screenshot out of a JSON tool result.

    Returns the tool message content without the image, and the image URI
    (or ``None`` when the result carries no image).
    """
    if result.is_error or '"image"' not in result.content:
        return result.content, None
    try:
        parsed: Any = json.loads(result.content)
    except json.JSONDecodeError:
        return result.content, None

    if not isinstance(parsed, dict):
        return result.content, None
    image = parsed.get("image")
    if not isinstance(image, str) or not image.startswith(DATA_IMAGE_PREFIX):
        return result.content, None

    rest = {k: v for k, v in parsed.items() if k != "image"}
    return json.dumps(rest or {"success": True}, ensure_ascii=False), image
