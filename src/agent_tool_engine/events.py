"""
Stream chunks and agent loop callbacks.

A provider stream is a sequence of :class:`StreamChunk` objects. A single
provider invocation always ends with exactly one ``done`` chunk:

    text* → (tool_call_delta* → tool_call_complete)? → done
    error → done

:class:`AgentCallbacks` lets a caller observe an agent loop (streamed text,
tool start/end, fatal errors) without influencing it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from agent_tool_engine.logging import get_logger
from agent_tool_engine.models import ToolCall

logger = get_logger("events")

# Chunk type constants
TEXT = "text"
TOOL_CALL_DELTA = "tool_call_delta"
TOOL_CALL_COMPLETE = "tool_call_complete"
ERROR = "error"
DONE = "done"

ChunkType = Literal["text", "tool_call_delta", "tool_call_complete", "error", "done"]


@dataclass
class StreamChunk:
    """A typed chunk decoded from a provider stream."""

    type: ChunkType
    content: str = ""
    """Text fragment (``text``) or human-readable message (``error``)."""

    tool_calls: list[ToolCall] = field(default_factory=list)
    """Flushed tool calls, in index order (``tool_call_complete`` only)."""

    @classmethod
    def text(cls, content: str) -> StreamChunk:
        return cls(type=TEXT, content=content)

    @classmethod
    def error(cls, message: str) -> StreamChunk:
        return cls(type=ERROR, content=message)

    @classmethod
    def done(cls) -> StreamChunk:
        return cls(type=DONE)


@dataclass
class AgentCallbacks:
    """
    Observation hooks for an agent loop. Each hook may be sync or async.

    Example:
        callbacks = AgentCallbacks(
            on_stream_chunk=lambda text: print(text, end=""),
            on_tool_start=lambda call, args: print(f"→ {call.name}"),
        )
    """

    on_stream_chunk: Callable[[str], Any] | None = None
    on_tool_start: Callable[[ToolCall, dict[str, Any]], Any] | None = None
    on_tool_end: Callable[[str, str], Any] | None = None
    on_error: Callable[[str], Any] | None = None

    async def emit(self, hook: str, *args: Any) -> None:
        """Invoke a hook by attribute name. Observer failures are logged, not raised."""
        fn = getattr(self, hook, None)
        if fn is None:
            return
        try:
            result = fn(*args)
            if asyncio.iscoroutine(result) or asyncio.isfuture(result):
                await result
        except Exception as e:
            logger.warning("Callback %s raised: %s", hook, e)
