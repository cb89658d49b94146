from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Classifies backend stream chunks into a closed set of variants.

Each `StreamChunk` maps to exactly one variant. Shapes that are not
recognised become `Ignored`, so new backend stream kinds never abort a join.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, TypeAlias

from ..errors import TranslationError
from ..normalization import extract_text_from_content, get_field, to_jsonable, to_plain_dict
from ..types import StreamChunk

MANUAL_MESSAGE_EVENT = "copilotkit_manually_emit_message"
MANUAL_TOOL_CALL_EVENT = "copilotkit_manually_emit_tool_call"
MANUAL_STATE_EVENT = "copilotkit_manually_emit_intermediate_state"
EMIT_MESSAGES_KEY = "copilotkit:emit-messages"
EMIT_TOOL_CALLS_KEY = "copilotkit:emit-tool-calls"


@dataclass(frozen=True, slots=True)
class RunMetadata:
    run_id: str


@dataclass(frozen=True, slots=True)
class ToolCallFragment:
    """Partial tool call; only the first fragment of a call carries id and name."""

    tool_call_id: str | None = None
    name: str | None = None
    args: str = ""
    index: int | None = None


@dataclass(frozen=True, slots=True)
class MessageDelta:
    message_id: str
    text: str = ""
    fragments: tuple[ToolCallFragment, ...] = ()
    emit_messages: bool = True
    emit_tool_calls: bool = True


@dataclass(frozen=True, slots=True)
class FinalToolCall:
    tool_call_id: str
    name: str
    args: str


@dataclass(frozen=True, slots=True)
class MessageEnd:
    message_id: str
    text: str = ""
    tool_calls: tuple[FinalToolCall, ...] = ()
    emit_messages: bool = True
    emit_tool_calls: bool = True


@dataclass(frozen=True, slots=True)
class ManualMessage:
    message_id: str
    text: str


@dataclass(frozen=True, slots=True)
class ManualToolCall:
    tool_call_id: str
    name: str
    args: str


@dataclass(frozen=True, slots=True)
class StateUpdate:
    """Application state pushed by the graph ahead of its next checkpoint."""

    state: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StateValues:
    """Full checkpoint values from the `values` stream mode."""

    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CustomSignal:
    name: str
    value: Any = None


@dataclass(frozen=True, slots=True)
class StreamFailure:
    message: str


@dataclass(frozen=True, slots=True)
class Ignored:
    reason: str


ChunkVariant: TypeAlias = (
    RunMetadata
    | MessageDelta
    | MessageEnd
    | ManualMessage
    | ManualToolCall
    | StateUpdate
    | StateValues
    | CustomSignal
    | StreamFailure
    | Ignored
)


def _json_args(args: Any) -> str:
    if isinstance(args, str):
        return args
    return json.dumps(to_jsonable(args if args is not None else {}))


def _require_id(value: Any, what: str) -> str:
    if isinstance(value, str) and value:
        return value
    raise TranslationError(f"{what} without an id")


def _emit_flags(event: Mapping[str, Any]) -> tuple[bool, bool]:
    metadata = event.get("metadata")
    if not isinstance(metadata, Mapping):
        return True, True
    return (
        metadata.get(EMIT_MESSAGES_KEY, True) is not False,
        metadata.get(EMIT_TOOL_CALLS_KEY, True) is not False,
    )


def _fragments(raw: Any) -> tuple[ToolCallFragment, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    out: list[ToolCallFragment] = []
    for item in raw:
        part = to_plain_dict(item)
        call_id = part.get("id")
        name = part.get("name")
        args = part.get("args")
        index = part.get("index")
        out.append(
            ToolCallFragment(
                tool_call_id=call_id if isinstance(call_id, str) and call_id else None,
                name=name if isinstance(name, str) and name else None,
                args=args if isinstance(args, str) else ("" if args is None else _json_args(args)),
                index=index if isinstance(index, int) else None,
            )
        )
    return tuple(out)


def _classify_event(event: Mapping[str, Any]) -> ChunkVariant:
    kind = event.get("event")
    payload = event.get("data")

    if kind == "on_chat_model_stream":
        message = to_plain_dict(get_field(payload, "chunk"))
        emit_messages, emit_tool_calls = _emit_flags(event)
        return MessageDelta(
            message_id=_require_id(message.get("id"), "model stream chunk"),
            text=extract_text_from_content(message.get("content")),
            fragments=_fragments(message.get("tool_call_chunks")),
            emit_messages=emit_messages,
            emit_tool_calls=emit_tool_calls,
        )

    if kind == "on_chat_model_end":
        message = to_plain_dict(get_field(payload, "output"))
        emit_messages, emit_tool_calls = _emit_flags(event)
        calls: list[FinalToolCall] = []
        for item in message.get("tool_calls") or ():
            call = to_plain_dict(item)
            calls.append(
                FinalToolCall(
                    tool_call_id=_require_id(call.get("id"), "final tool call"),
                    name=str(call.get("name") or ""),
                    args=_json_args(call.get("args")),
                )
            )
        return MessageEnd(
            message_id=_require_id(message.get("id"), "model end chunk"),
            text=extract_text_from_content(message.get("content")),
            tool_calls=tuple(calls),
            emit_messages=emit_messages,
            emit_tool_calls=emit_tool_calls,
        )

    if kind == "on_custom_event":
        name = event.get("name")
        if name == MANUAL_MESSAGE_EVENT:
            data = to_plain_dict(payload)
            return ManualMessage(
                message_id=_require_id(data.get("message_id"), "manual message"),
                text=extract_text_from_content(data.get("message")),
            )
        if name == MANUAL_TOOL_CALL_EVENT:
            data = to_plain_dict(payload)
            return ManualToolCall(
                tool_call_id=_require_id(data.get("id"), "manual tool call"),
                name=str(data.get("name") or ""),
                args=_json_args(data.get("args")),
            )
        if name == MANUAL_STATE_EVENT:
            if not isinstance(payload, Mapping):
                raise TranslationError("manual state event without a mapping payload")
            return StateUpdate(state=dict(payload))
        if isinstance(name, str) and name:
            return CustomSignal(name=name, value=payload)

    return Ignored(reason=f"events:{kind}")


def classify_chunk(chunk: StreamChunk) -> ChunkVariant:
    """
    Map one stream chunk to its variant.

    Raises:
        TranslationError: A recognised shape lacks a required identifier.
    """
    data = chunk.data

    if chunk.event == "metadata":
        run_id = get_field(data, "run_id")
        if isinstance(run_id, str) and run_id:
            return RunMetadata(run_id=run_id)
        return Ignored(reason="metadata without run_id")

    if chunk.event == "events":
        if not isinstance(data, Mapping):
            return Ignored(reason="events chunk without a mapping payload")
        return _classify_event(data)

    if chunk.event == "values":
        if not isinstance(data, Mapping):
            return Ignored(reason="values chunk without a mapping payload")
        return StateValues(values=dict(data))

    if chunk.event == "custom":
        if not isinstance(data, Mapping):
            return Ignored(reason="custom chunk without a mapping payload")
        return StateUpdate(state=dict(data))

    if chunk.event == "error":
        message = get_field(data, "message") or get_field(data, "error") or data
        return StreamFailure(message=str(message))

    return Ignored(reason=chunk.event)
