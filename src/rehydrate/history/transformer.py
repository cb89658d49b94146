from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Maps backend message records onto canonical protocol messages.
"""

import json
import logging
from typing import Any, Iterable

from ag_ui.core import (
    AssistantMessage,
    DeveloperMessage,
    FunctionCall,
    Message,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
)
from pydantic import ValidationError

from ..normalization import extract_text_from_content, get_field, to_jsonable, to_plain_dict
from ..telemetry import NullTelemetrySink, TelemetrySink

logger = logging.getLogger(__name__)

_USER_TYPES = {"human", "user", "HumanMessage", "HumanMessageChunk"}
_ASSISTANT_TYPES = {"ai", "assistant", "AIMessage", "AIMessageChunk"}
_TOOL_TYPES = {"tool", "ToolMessage", "ToolMessageChunk"}
_SYSTEM_TYPES = {"system", "SystemMessage", "SystemMessageChunk"}
_DEVELOPER_TYPES = {"developer"}


class UnsupportedMessageError(ValueError):
    """Backend message whose type has no canonical role."""


def _content_text(content: Any) -> str:
    if content is None or isinstance(content, (str, list, tuple)):
        return extract_text_from_content(content)
    if isinstance(content, dict) and isinstance(content.get("text"), str):
        return content["text"]
    return json.dumps(to_jsonable(content))


def _arguments(args: Any) -> str:
    if isinstance(args, str):
        return args
    return json.dumps(to_jsonable(args if args is not None else {}))


def _tool_calls(raw_calls: Any) -> list[ToolCall]:
    if not isinstance(raw_calls, (list, tuple)):
        return []
    out: list[ToolCall] = []
    for item in raw_calls:
        call = to_plain_dict(item)
        out.append(
            ToolCall(
                id=call.get("id"),
                type="function",
                function=FunctionCall(
                    name=str(call.get("name") or ""),
                    arguments=_arguments(call.get("args")),
                ),
            )
        )
    return out


def transform_message(message: Any) -> Message:
    """
    Convert one backend record to its canonical counterpart, keeping `id`.

    Raises:
        UnsupportedMessageError: The record's type maps to no canonical role.
        pydantic.ValidationError: The record is missing required fields.
    """
    kind = get_field(message, "type") or get_field(message, "role")
    if not isinstance(kind, str):
        raise UnsupportedMessageError(f"message without a type tag: {kind!r}")
    msg_id = get_field(message, "id")
    content = get_field(message, "content")
    name = get_field(message, "name")
    name = name if isinstance(name, str) and name else None

    if kind in _USER_TYPES:
        return UserMessage(id=msg_id, role="user", content=_content_text(content), name=name)

    if kind in _ASSISTANT_TYPES:
        tool_calls = _tool_calls(get_field(message, "tool_calls"))
        text = _content_text(content)
        return AssistantMessage(
            id=msg_id,
            role="assistant",
            content=text if text or not tool_calls else None,
            tool_calls=tool_calls or None,
            name=name,
        )

    if kind in _TOOL_TYPES:
        return ToolMessage(
            id=msg_id,
            role="tool",
            content=_content_text(content),
            tool_call_id=get_field(message, "tool_call_id"),
        )

    if kind in _SYSTEM_TYPES:
        return SystemMessage(id=msg_id, role="system", content=_content_text(content), name=name)

    if kind in _DEVELOPER_TYPES:
        return DeveloperMessage(id=msg_id, role="developer", content=_content_text(content), name=name)

    raise UnsupportedMessageError(f"unsupported message type {kind!r}")


def transform_messages(
    messages: Iterable[Any],
    *,
    telemetry: TelemetrySink | None = None,
) -> list[Message]:
    """
    Transform a message log 1:1, preserving order.

    Malformed entries are skipped and logged; one bad record never fails the
    whole hydration.
    """
    sink = telemetry or NullTelemetrySink()
    out: list[Message] = []
    for message in messages:
        try:
            out.append(transform_message(message))
        except (UnsupportedMessageError, ValidationError) as exc:
            logger.warning(
                "Skipping message %r during hydration: %s", get_field(message, "id"), exc
            )
            sink.increment_counter("hydration.messages_skipped", 1)
    return out
