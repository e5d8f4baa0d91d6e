"""Tests for SSE stream decoding and tool-call reassembly."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from agent_tool_engine.events import DONE, ERROR, TEXT, TOOL_CALL_COMPLETE, TOOL_CALL_DELTA
from agent_tool_engine.streaming import StreamDecoder, decode_stream
from conftest import finish_event, sse, text_event, tool_delta_event


async def _aiter(frames: list[bytes]) -> AsyncIterator[bytes]:
    for frame in frames:
        yield frame


async def _collect(frames: list[bytes]) -> list:
    return [chunk async for chunk in decode_stream(_aiter(frames))]


class TestTextDecoding:
    def test_text_delta_emits_text_chunk(self) -> None:
        decoder = StreamDecoder()
        chunks = decoder.feed(sse(text_event("Hello")))
        assert [(c.type, c.content) for c in chunks] == [(TEXT, "Hello")]

    def test_line_split_across_frames(self) -> None:
        decoder = StreamDecoder()
        data = sse(text_event("split"))
        assert decoder.feed(data[:10]) == []
        chunks = decoder.feed(data[10:])
        assert [c.content for c in chunks] == ["split"]

    def test_utf8_character_split_across_frames(self) -> None:
        decoder = StreamDecoder()
        data = sse(text_event("价格"))
        # Cut in the middle of the first multi-byte character
        cut = data.index("价".encode()) + 1
        first = decoder.feed(data[:cut])
        second = decoder.feed(data[cut:])
        assert first == []
        assert [c.content for c in second] == ["价格"]

    def test_done_sentinel_is_ignored(self) -> None:
        decoder = StreamDecoder()
        assert decoder.feed(b"data: [DONE]\n\n") == []

    def test_non_data_lines_are_ignored(self) -> None:
        decoder = StreamDecoder()
        assert decoder.feed(b": keep-alive\nevent: ping\n\n") == []

    def test_malformed_json_is_skipped(self) -> None:
        decoder = StreamDecoder()
        chunks = decoder.feed(b"data: {not json\n" + sse(text_event("ok")))
        assert [c.content for c in chunks] == ["ok"]

    def test_crlf_line_endings(self) -> None:
        decoder = StreamDecoder()
        chunks = decoder.feed(sse(text_event("crlf")).replace(b"\n", b"\r\n"))
        assert [c.content for c in chunks] == ["crlf"]

    def test_empty_content_is_not_emitted(self) -> None:
        decoder = StreamDecoder()
        assert decoder.feed(sse(text_event(""))) == []

    def test_unterminated_trailing_line_is_processed_on_finish(self) -> None:
        decoder = StreamDecoder()
        assert decoder.feed(b'data: {"choices":[{"delta":{"content":"tail"}}]}') == []
        chunks = decoder.finish()
        assert [c.content for c in chunks] == ["tail"]


class TestToolCallReassembly:
    def test_fragments_are_concatenated_and_flushed_on_tool_calls(self) -> None:
        decoder = StreamDecoder()
        chunks = []
        chunks += decoder.feed(sse(tool_delta_event(0, "c1", "fetch_quote", '{"sym')))
        chunks += decoder.feed(sse(tool_delta_event(0, arguments='bol":"AAPL"}')))
        chunks += decoder.feed(sse(finish_event("tool_calls")))

        types = [c.type for c in chunks]
        assert types == [TOOL_CALL_DELTA, TOOL_CALL_DELTA, TOOL_CALL_COMPLETE]

        calls = chunks[-1].tool_calls
        assert len(calls) == 1
        assert calls[0].id == "c1"
        assert calls[0].function.name == "fetch_quote"
        assert calls[0].function.arguments == '{"symbol":"AAPL"}'
        assert not decoder.has_pending_tool_calls

    def test_parallel_calls_flushed_in_index_order(self) -> None:
        decoder = StreamDecoder()
        decoder.feed(sse(tool_delta_event(1, "c2", "second", "{}")))
        decoder.feed(sse(tool_delta_event(0, "c1", "first", "{}")))
        chunks = decoder.feed(sse(finish_event("tool_calls")))
        assert [c.id for c in chunks[-1].tool_calls] == ["c1", "c2"]

    def test_stop_with_pending_slots_flushes(self) -> None:
        decoder = StreamDecoder()
        decoder.feed(sse(tool_delta_event(0, "c1", "lookup", "{}")))
        chunks = decoder.feed(sse(finish_event("stop")))
        assert chunks[-1].type == TOOL_CALL_COMPLETE
        assert chunks[-1].tool_calls[0].name == "lookup"

    def test_stop_without_slots_does_not_flush(self) -> None:
        decoder = StreamDecoder()
        assert decoder.feed(sse(finish_event("stop"))) == []

    def test_finish_flushes_pending_slots(self) -> None:
        decoder = StreamDecoder()
        decoder.feed(sse(tool_delta_event(0, "c1", "lookup", '{"q":1}')))
        chunks = decoder.finish()
        assert len(chunks) == 1
        assert chunks[0].type == TOOL_CALL_COMPLETE
        assert chunks[0].tool_calls[0].function.arguments == '{"q":1}'

    def test_new_id_at_same_index_overwrites_slot(self) -> None:
        decoder = StreamDecoder()
        decoder.feed(sse(tool_delta_event(0, "old", "first", '{"a":')))
        decoder.feed(sse(tool_delta_event(0, "new", "second", "{}")))
        chunks = decoder.feed(sse(finish_event("tool_calls")))
        calls = chunks[-1].tool_calls
        assert [(c.id, c.name, c.function.arguments) for c in calls] == [("new", "second", "{}")]

    def test_fragment_for_unknown_index_is_dropped(self) -> None:
        decoder = StreamDecoder()
        chunks = decoder.feed(sse(tool_delta_event(3, arguments='{"x":1}')))
        assert [c.type for c in chunks] == [TOOL_CALL_DELTA]
        assert not decoder.has_pending_tool_calls

    def test_malformed_arguments_are_kept_verbatim(self) -> None:
        decoder = StreamDecoder()
        decoder.feed(sse(tool_delta_event(0, "c1", "broken", '{"unterminated')))
        chunks = decoder.feed(sse(finish_event("tool_calls")))
        call = chunks[-1].tool_calls[0]
        assert call.function.arguments == '{"unterminated'
        assert call.parse_arguments() == {}


class TestDecodeStream:
    @pytest.mark.asyncio
    async def test_single_done_at_end(self) -> None:
        chunks = await _collect([sse(text_event("a")), sse(text_event("b")), b"data: [DONE]\n\n"])
        assert [c.type for c in chunks] == [TEXT, TEXT, DONE]

    @pytest.mark.asyncio
    async def test_end_of_stream_flushes_tool_calls_before_done(self) -> None:
        chunks = await _collect([sse(tool_delta_event(0, "c1", "lookup", "{}"))])
        assert [c.type for c in chunks] == [TOOL_CALL_DELTA, TOOL_CALL_COMPLETE, DONE]

    @pytest.mark.asyncio
    async def test_read_failure_yields_error_then_single_done(self) -> None:
        async def failing() -> AsyncIterator[bytes]:
            yield sse(text_event("partial"))
            raise ConnectionResetError("peer reset")

        chunks = [c async for c in decode_stream(failing())]
        assert [c.type for c in chunks] == [TEXT, ERROR, DONE]
        assert "peer reset" in chunks[1].content

    @pytest.mark.asyncio
    async def test_empty_stream_yields_only_done(self) -> None:
        chunks = await _collect([])
        assert [c.type for c in chunks] == [DONE]

    @pytest.mark.asyncio
    async def test_odd_shaped_payloads_are_skipped(self) -> None:
        chunks = await _collect(
            [
                sse({"choices": [{"delta": "text"}]}),
                sse({"choices": [{"delta": {"tool_calls": [{"index": 0, "id": "c1", "function": "x"}]}}]}),
                sse({"choices": [{"delta": {"tool_calls": [{"index": 0, "id": 7, "function": {"name": 3}}]}}]}),
                b"data: " + b"[" * 200_000 + b"\n\n",
                sse(text_event("still here")),
            ]
        )
        assert [c.type for c in chunks] == [TOOL_CALL_DELTA, TOOL_CALL_DELTA, TEXT, DONE]
        assert chunks[2].content == "still here"
