from __future__ import annotations

from collections import namedtuple

import pytest

from rehydrate.errors import TranslationError
from rehydrate.stream.chunks import (
    CustomSignal,
    Ignored,
    ManualMessage,
    ManualToolCall,
    MessageDelta,
    MessageEnd,
    RunMetadata,
    StateUpdate,
    StateValues,
    StreamFailure,
    classify_chunk,
)
from rehydrate.types import StreamChunk


def events_chunk(event: str, data: dict, **extra) -> StreamChunk:
    return StreamChunk(event="events", data={"event": event, "data": data, **extra})


def test_metadata_carries_run_id():
    assert classify_chunk(StreamChunk("metadata", {"run_id": "r9"})) == RunMetadata("r9")
    assert isinstance(classify_chunk(StreamChunk("metadata", {})), Ignored)


def test_model_stream_chunk_becomes_delta_with_fragments():
    variant = classify_chunk(
        events_chunk(
            "on_chat_model_stream",
            {
                "chunk": {
                    "id": "m1",
                    "content": "Hel",
                    "tool_call_chunks": [
                        {"id": "c1", "name": "search", "args": '{"q"', "index": 0},
                        {"id": None, "name": None, "args": ': "x"}', "index": 0},
                    ],
                }
            },
        )
    )

    assert isinstance(variant, MessageDelta)
    assert variant.message_id == "m1"
    assert variant.text == "Hel"
    assert variant.fragments[0].tool_call_id == "c1"
    assert variant.fragments[1].tool_call_id is None
    assert variant.fragments[1].args == ': "x"}'


def test_emit_flags_are_read_from_metadata():
    variant = classify_chunk(
        events_chunk(
            "on_chat_model_stream",
            {"chunk": {"id": "m1", "content": "x"}},
            metadata={"copilotkit:emit-messages": False},
        )
    )

    assert variant.emit_messages is False
    assert variant.emit_tool_calls is True


def test_model_end_collects_final_tool_calls():
    variant = classify_chunk(
        events_chunk(
            "on_chat_model_end",
            {
                "output": {
                    "id": "m1",
                    "content": "done",
                    "tool_calls": [{"id": "c1", "name": "search", "args": {"q": "x"}}],
                }
            },
        )
    )

    assert isinstance(variant, MessageEnd)
    assert variant.tool_calls[0].tool_call_id == "c1"
    assert variant.tool_calls[0].args == '{"q": "x"}'


def test_model_stream_without_message_id_is_a_translation_error():
    with pytest.raises(TranslationError):
        classify_chunk(events_chunk("on_chat_model_stream", {"chunk": {"content": "x"}}))


def test_manual_custom_events():
    message = classify_chunk(
        events_chunk(
            "on_custom_event",
            {"message_id": "mm", "message": "typed by graph"},
            name="copilotkit_manually_emit_message",
        )
    )
    tool = classify_chunk(
        events_chunk(
            "on_custom_event",
            {"id": "tc", "name": "lookup", "args": {"k": 1}},
            name="copilotkit_manually_emit_tool_call",
        )
    )
    state = classify_chunk(
        events_chunk(
            "on_custom_event",
            {"progress": 0.5},
            name="copilotkit_manually_emit_intermediate_state",
        )
    )
    other = classify_chunk(events_chunk("on_custom_event", {"a": 1}, name="app_signal"))

    assert message == ManualMessage(message_id="mm", text="typed by graph")
    assert tool == ManualToolCall(tool_call_id="tc", name="lookup", args='{"k": 1}')
    assert state == StateUpdate(state={"progress": 0.5})
    assert other == CustomSignal(name="app_signal", value={"a": 1})


def test_values_custom_and_error_modes():
    assert classify_chunk(StreamChunk("values", {"count": 1})) == StateValues({"count": 1})
    assert classify_chunk(StreamChunk("custom", {"step": "b"})) == StateUpdate({"step": "b"})
    assert classify_chunk(StreamChunk("error", {"message": "boom"})) == StreamFailure("boom")


def test_unknown_shapes_are_ignored():
    assert isinstance(classify_chunk(StreamChunk("debug", {"x": 1})), Ignored)
    assert isinstance(classify_chunk(StreamChunk("updates", {"node": {}})), Ignored)
    assert isinstance(classify_chunk(events_chunk("on_tool_start", {})), Ignored)
    assert isinstance(classify_chunk(StreamChunk("values", ["not", "a", "map"])), Ignored)


def test_stream_chunk_accepts_sdk_stream_parts_and_pairs():
    StreamPart = namedtuple("StreamPart", ["event", "data"])

    assert StreamChunk.from_raw(StreamPart("values", {"a": 1})) == StreamChunk("values", {"a": 1})
    assert StreamChunk.from_raw(("metadata", {"run_id": "r"})).event == "metadata"
    assert StreamChunk.from_raw({"event": "custom", "data": {}}).event == "custom"
    with pytest.raises(ValueError):
        StreamChunk.from_raw(42)
