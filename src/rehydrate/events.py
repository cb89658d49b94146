from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Builders for the canonical protocol events emitted during hydration.
"""

import json
from dataclasses import dataclass
from typing import Any, Sequence

from ag_ui.core import (
    BaseEvent,
    CustomEvent,
    EventType,
    Message,
    MessagesSnapshotEvent,
    RunFinishedEvent,
    RunStartedEvent,
    StateSnapshotEvent,
    TextMessageContentEvent,
    TextMessageEndEvent,
    TextMessageStartEvent,
    ToolCallArgsEvent,
    ToolCallEndEvent,
    ToolCallStartEvent,
)

from .normalization import to_jsonable
from .types import InterruptSignal, now_ms

INTERRUPT_EVENT_NAME = "on_interrupt"


@dataclass(slots=True)
class ProtocolEvents:
    """
    Event builder bound to one thread and the currently known run id.

    Every event carries `timestamp`, `thread_id` and `run_id`. `run_id` is
    mutable: a live stream may announce a run id that supersedes the one the
    join was opened with.
    """

    thread_id: str
    run_id: str

    def _ids(self) -> dict[str, Any]:
        return {"thread_id": self.thread_id, "run_id": self.run_id, "timestamp": now_ms()}

    def run_started(self) -> BaseEvent:
        return RunStartedEvent(type=EventType.RUN_STARTED, **self._ids())

    def run_finished(self) -> BaseEvent:
        return RunFinishedEvent(type=EventType.RUN_FINISHED, **self._ids())

    def messages_snapshot(self, messages: Sequence[Message]) -> BaseEvent:
        return MessagesSnapshotEvent(
            type=EventType.MESSAGES_SNAPSHOT,
            messages=list(messages),
            **self._ids(),
        )

    def state_snapshot(self, snapshot: dict[str, Any], *, source: str = "values") -> BaseEvent:
        return StateSnapshotEvent(
            type=EventType.STATE_SNAPSHOT,
            snapshot=snapshot,
            raw_event={"id": self.run_id, "event": source, "data": snapshot},
            **self._ids(),
        )

    def interrupt(self, signal: InterruptSignal) -> BaseEvent:
        value = to_jsonable(signal.value)
        return CustomEvent(
            type=EventType.CUSTOM,
            name=INTERRUPT_EVENT_NAME,
            value=json.dumps(value),
            raw_event={"id": self.run_id, "value": value},
            **self._ids(),
        )

    def custom(self, name: str, value: Any) -> BaseEvent:
        return CustomEvent(type=EventType.CUSTOM, name=name, value=to_jsonable(value), **self._ids())

    def text_start(self, message_id: str) -> BaseEvent:
        return TextMessageStartEvent(
            type=EventType.TEXT_MESSAGE_START,
            message_id=message_id,
            role="assistant",
            **self._ids(),
        )

    def text_content(self, message_id: str, delta: str) -> BaseEvent:
        return TextMessageContentEvent(
            type=EventType.TEXT_MESSAGE_CONTENT,
            message_id=message_id,
            delta=delta,
            **self._ids(),
        )

    def text_end(self, message_id: str) -> BaseEvent:
        return TextMessageEndEvent(
            type=EventType.TEXT_MESSAGE_END,
            message_id=message_id,
            **self._ids(),
        )

    def tool_start(
        self, tool_call_id: str, name: str, *, parent_message_id: str | None = None
    ) -> BaseEvent:
        return ToolCallStartEvent(
            type=EventType.TOOL_CALL_START,
            tool_call_id=tool_call_id,
            tool_call_name=name,
            parent_message_id=parent_message_id,
            **self._ids(),
        )

    def tool_args(self, tool_call_id: str, delta: str) -> BaseEvent:
        return ToolCallArgsEvent(
            type=EventType.TOOL_CALL_ARGS,
            tool_call_id=tool_call_id,
            delta=delta,
            **self._ids(),
        )

    def tool_end(self, tool_call_id: str) -> BaseEvent:
        return ToolCallEndEvent(
            type=EventType.TOOL_CALL_END,
            tool_call_id=tool_call_id,
            **self._ids(),
        )
