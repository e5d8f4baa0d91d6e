"""
Server-sent event decoding for OpenAI-compatible chat streams.

The wire format is newline-delimited ``data: <json>`` frames terminated by
``data: [DONE]``. Network frames do not line up with SSE lines: a frame may
end in the middle of a line or in the middle of a multi-byte UTF-8 character,
so both the byte decoder and the line buffer carry state across ``feed()``
calls.

Tool calls arrive as fragments keyed by ``index``::

    {"index": 0, "id": "c1", "function": {"name": "fetch", "arguments": "{\\"sym"}}
    {"index": 0, "function": {"arguments": "bol\\":\\"AAPL\\"}"}}

Argument fragments are concatenated verbatim and only surface as a
:class:`~agent_tool_engine.models.ToolCall` once flushed.
"""

from __future__ import annotations

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from typing import Any

from agent_tool_engine.events import TOOL_CALL_COMPLETE, TOOL_CALL_DELTA, StreamChunk
from agent_tool_engine.logging import get_logger
from agent_tool_engine.models import FunctionCall, ToolCall

logger = get_logger("streaming")

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


@dataclass
class _ToolCallSlot:
    """Accumulator for one in-flight tool call."""

    id: str
    name: str
    arguments: str = ""

    def freeze(self) -> ToolCall:
        return ToolCall(id=self.id, function=FunctionCall(name=self.name, arguments=self.arguments))


class StreamDecoder:
    """
    Incremental decoder from raw SSE bytes to :class:`StreamChunk` objects.

    Example:
        decoder = StreamDecoder()
        for data in frames:
            for chunk in decoder.feed(data):
                handle(chunk)
        for chunk in decoder.finish():
            handle(chunk)

    ``feed`` and ``finish`` never emit ``done`` or ``error``; those belong to
    the stream as a whole (see :func:`decode_stream`).
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._slots: dict[int, _ToolCallSlot] = {}

    @property
    def has_pending_tool_calls(self) -> bool:
        return bool(self._slots)

    def feed(self, data: bytes) -> list[StreamChunk]:
        """Consume a network frame and return the chunks it completes."""
        self._buffer += self._decoder.decode(data)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        chunks: list[StreamChunk] = []
        for line in lines:
            chunks.extend(self._handle_line(line))
        return chunks

    def finish(self) -> list[StreamChunk]:
        """
        Signal end of the byte stream.

        Processes any trailing unterminated line and flushes tool calls that
        never saw a finish reason.
        """
        self._buffer += self._decoder.decode(b"", final=True)
        chunks: list[StreamChunk] = []
        if self._buffer.strip():
            chunks.extend(self._handle_line(self._buffer))
        self._buffer = ""

        if self._slots:
            logger.debug("Stream ended with %d pending tool call(s); flushing", len(self._slots))
            chunks.append(self._flush())
        return chunks

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _handle_line(self, line: str) -> list[StreamChunk]:
        line = line.strip()
        if not line.startswith(DATA_PREFIX):
            return []

        payload = line[len(DATA_PREFIX):].strip()
        if not payload or payload == DONE_SENTINEL:
            return []

        try:
            event = json.loads(payload)
        except (ValueError, RecursionError):
            logger.debug("Skipping malformed stream payload: %.200s", payload)
            return []

        if not isinstance(event, dict):
            return []
        return self._handle_event(event)

    def _handle_event(self, event: dict[str, Any]) -> list[StreamChunk]:
        choices = event.get("choices")
        if not choices or not isinstance(choices, list) or not isinstance(choices[0], dict):
            return []

        choice = choices[0]
        delta = choice.get("delta")
        if not isinstance(delta, dict):
            delta = {}
        chunks: list[StreamChunk] = []

        content = delta.get("content")
        if isinstance(content, str) and content:
            chunks.append(StreamChunk.text(content))

        tool_calls = delta.get("tool_calls")
        if isinstance(tool_calls, list):
            for entry in tool_calls:
                if isinstance(entry, dict):
                    self._accumulate(entry)
                    chunks.append(StreamChunk(type=TOOL_CALL_DELTA))

        finish_reason = choice.get("finish_reason")
        if finish_reason == "tool_calls" or (finish_reason == "stop" and self._slots):
            chunks.append(self._flush())

        return chunks

    def _accumulate(self, entry: dict[str, Any]) -> None:
        try:
            index = int(entry.get("index", 0))
        except (TypeError, ValueError):
            index = 0

        function = entry.get("function")
        if not isinstance(function, dict):
            function = {}
        call_id = entry.get("id")
        name = function.get("name")
        if not isinstance(call_id, str) or not isinstance(name, str):
            call_id = name = None
        arguments = function.get("arguments")
        if not isinstance(arguments, str):
            arguments = ""

        if call_id and name:
            self._slots[index] = _ToolCallSlot(id=call_id, name=name, arguments=arguments)
        elif arguments:
            slot = self._slots.get(index)
            if slot is None:
                logger.debug("Dropping argument fragment for unknown tool call index %d", index)
                return
            slot.arguments += arguments

    def _flush(self) -> StreamChunk:
        calls = [self._slots[index].freeze() for index in sorted(self._slots)]
        self._slots.clear()
        return StreamChunk(type=TOOL_CALL_COMPLETE, tool_calls=calls)


async def decode_stream(source: AsyncIterable[bytes]) -> AsyncIterator[StreamChunk]:
    """
    Decode an async byte stream into chunks.

    Always finishes with exactly one ``done`` chunk. A failure while reading
    ``source`` becomes a single ``error`` chunk instead of an exception.
    """
    decoder = StreamDecoder()
    try:
        async for data in source:
            for chunk in decoder.feed(data):
                yield chunk
        for chunk in decoder.finish():
            yield chunk
    except Exception as e:
        logger.warning("Stream read failed: %s", e)
        yield StreamChunk.error(f"Stream error: {e}")
    yield StreamChunk.done()
