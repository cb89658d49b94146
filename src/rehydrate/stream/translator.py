from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Incremental translation of live stream chunks into protocol events.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from ag_ui.core import BaseEvent

from ..events import ProtocolEvents
from ..types import StreamChunk
from .chunks import (
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

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TranslatorState:
    """
    Cross-chunk state owned by one join.

    Attributes:
        run_id: Latest known run id; later events use it.
        started_messages: Message ids whose start event has been emitted and
            whose end has not.
        started_tool_calls: Same, keyed on tool-call id.
        tool_call_ids: `(message_id, index) -> tool_call_id` for attributing
            id-less argument fragments.
        manually_emitted_state: Last state pushed ahead of a checkpoint; an
            identical snapshot is not announced again.
    """

    run_id: str
    started_messages: set[str] = field(default_factory=set)
    started_tool_calls: set[str] = field(default_factory=set)
    tool_call_ids: dict[tuple[str, int], str] = field(default_factory=dict)
    manually_emitted_state: dict[str, Any] | None = None


class StreamChunkTranslator:
    """
    Turns one backend chunk at a time into zero or more protocol events.

    A join may attach after the run already streamed part of a message, so a
    content or end chunk for an entity this translator never saw start gets a
    synthesized start event first.
    """

    def __init__(
        self,
        *,
        thread_id: str,
        run_id: str,
        manually_emitted_state: dict[str, Any] | None = None,
    ) -> None:
        self._state = TranslatorState(run_id=run_id, manually_emitted_state=manually_emitted_state)
        self._events = ProtocolEvents(thread_id=thread_id, run_id=run_id)

    @property
    def state(self) -> TranslatorState:
        return self._state

    @property
    def run_id(self) -> str:
        return self._state.run_id

    @property
    def manually_emitted_state(self) -> dict[str, Any] | None:
        return self._state.manually_emitted_state

    def translate(self, chunk: StreamChunk) -> list[BaseEvent]:
        variant = classify_chunk(chunk)

        if isinstance(variant, RunMetadata):
            self._state.run_id = variant.run_id
            self._events.run_id = variant.run_id
            return []
        if isinstance(variant, MessageDelta):
            return self._on_delta(variant)
        if isinstance(variant, MessageEnd):
            return self._on_end(variant)
        if isinstance(variant, ManualMessage):
            return self._on_manual_message(variant)
        if isinstance(variant, ManualToolCall):
            return self._on_manual_tool_call(variant)
        if isinstance(variant, StateUpdate):
            return self._on_state_update(variant)
        if isinstance(variant, StateValues):
            if variant.values == self._state.manually_emitted_state:
                return []
            return [self._events.state_snapshot(variant.values)]
        if isinstance(variant, CustomSignal):
            return [self._events.custom(variant.name, variant.value)]
        if isinstance(variant, StreamFailure):
            logger.warning("Backend reported a stream error for run %s: %s", self.run_id, variant.message)
            return []
        if isinstance(variant, Ignored):
            return []
        return []

    def close_open(self) -> list[BaseEvent]:
        """End every message and tool call still open when the stream stops."""
        events: list[BaseEvent] = []
        for tool_call_id in sorted(self._state.started_tool_calls):
            events.append(self._events.tool_end(tool_call_id))
        for message_id in sorted(self._state.started_messages):
            events.append(self._events.text_end(message_id))
        self._state.started_tool_calls.clear()
        self._state.started_messages.clear()
        self._state.tool_call_ids.clear()
        return events

    def _open_message(self, message_id: str) -> list[BaseEvent]:
        if message_id in self._state.started_messages:
            return []
        self._state.started_messages.add(message_id)
        return [self._events.text_start(message_id)]

    def _open_tool_call(
        self, tool_call_id: str, name: str, parent_message_id: str | None
    ) -> list[BaseEvent]:
        if tool_call_id in self._state.started_tool_calls:
            return []
        self._state.started_tool_calls.add(tool_call_id)
        return [self._events.tool_start(tool_call_id, name, parent_message_id=parent_message_id)]

    def _on_delta(self, delta: MessageDelta) -> list[BaseEvent]:
        events: list[BaseEvent] = []

        if delta.text and delta.emit_messages:
            events.extend(self._open_message(delta.message_id))
            events.append(self._events.text_content(delta.message_id, delta.text))

        if not delta.emit_tool_calls:
            return events

        for fragment in delta.fragments:
            key = (delta.message_id, fragment.index) if fragment.index is not None else None
            tool_call_id = fragment.tool_call_id
            if tool_call_id is None and key is not None:
                tool_call_id = self._state.tool_call_ids.get(key)
            if tool_call_id is None:
                # Its first fragment went out before this join attached.
                logger.debug("Dropping unattributable tool-call fragment on %s", delta.message_id)
                continue
            if fragment.tool_call_id is not None and key is not None:
                self._state.tool_call_ids[key] = tool_call_id

            events.extend(
                self._open_tool_call(tool_call_id, fragment.name or "", delta.message_id)
            )
            if fragment.args:
                events.append(self._events.tool_args(tool_call_id, fragment.args))
        return events

    def _on_end(self, end: MessageEnd) -> list[BaseEvent]:
        events: list[BaseEvent] = []

        if end.emit_messages:
            if end.message_id in self._state.started_messages:
                self._state.started_messages.discard(end.message_id)
                events.append(self._events.text_end(end.message_id))
            elif end.text:
                events.append(self._events.text_start(end.message_id))
                events.append(self._events.text_content(end.message_id, end.text))
                events.append(self._events.text_end(end.message_id))

        if end.emit_tool_calls:
            for call in end.tool_calls:
                if call.tool_call_id in self._state.started_tool_calls:
                    self._state.started_tool_calls.discard(call.tool_call_id)
                    events.append(self._events.tool_end(call.tool_call_id))
                    continue
                events.append(
                    self._events.tool_start(
                        call.tool_call_id, call.name, parent_message_id=end.message_id
                    )
                )
                if call.args:
                    events.append(self._events.tool_args(call.tool_call_id, call.args))
                events.append(self._events.tool_end(call.tool_call_id))

        self._state.tool_call_ids = {
            key: value
            for key, value in self._state.tool_call_ids.items()
            if key[0] != end.message_id
        }
        return events

    def _on_manual_message(self, message: ManualMessage) -> list[BaseEvent]:
        events = self._open_message(message.message_id)
        if message.text:
            events.append(self._events.text_content(message.message_id, message.text))
        self._state.started_messages.discard(message.message_id)
        events.append(self._events.text_end(message.message_id))
        return events

    def _on_manual_tool_call(self, call: ManualToolCall) -> list[BaseEvent]:
        events = self._open_tool_call(call.tool_call_id, call.name, None)
        if call.args:
            events.append(self._events.tool_args(call.tool_call_id, call.args))
        self._state.started_tool_calls.discard(call.tool_call_id)
        events.append(self._events.tool_end(call.tool_call_id))
        return events

    def _on_state_update(self, update: StateUpdate) -> list[BaseEvent]:
        if update.state == self._state.manually_emitted_state:
            return []
        self._state.manually_emitted_state = update.state
        return [self._events.state_snapshot(update.state, source="custom")]
