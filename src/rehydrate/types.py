from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines backend-side records read during hydration: checkpoints,
run descriptors and live stream chunks.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, TypeAlias

from .normalization import get_field, get_str, to_plain_dict

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

StreamMode = Literal[
    "values",
    "updates",
    "events",
    "custom",
    "messages-tuple",
    "messages",
    "debug",
    "metadata",
]
RunStatus = Literal["running", "pending", "success", "error", "timeout", "interrupted"]

ACTIVE_RUN_STATUSES: tuple[RunStatus, ...] = ("running", "pending")
JOIN_STREAM_MODES: tuple[StreamMode, ...] = ("events", "values", "updates", "custom")


@dataclass(frozen=True, slots=True)
class CheckpointTask:
    id: str | None = None
    name: str | None = None
    interrupts: tuple[dict[str, Any], ...] = ()

    @staticmethod
    def from_raw(raw: Any) -> "CheckpointTask":
        if isinstance(raw, CheckpointTask):
            return raw
        data = to_plain_dict(raw)
        interrupts = data.get("interrupts") or ()
        return CheckpointTask(
            id=data.get("id") if isinstance(data.get("id"), str) else None,
            name=data.get("name") if isinstance(data.get("name"), str) else None,
            interrupts=tuple(to_plain_dict(item) for item in interrupts),
        )


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """
    Snapshot of thread state at one execution step.

    Checkpoints are cumulative: `values["messages"]` holds every message known
    at that step, not a delta. The backend returns them newest-first.
    """

    values: dict[str, Any] | None = None
    next: tuple[str, ...] = ()
    tasks: tuple[CheckpointTask, ...] = ()
    created_at: str | None = None
    checkpoint_id: str | None = None

    @property
    def messages(self) -> list[Any]:
        if not self.values:
            return []
        messages = self.values.get("messages")
        if isinstance(messages, (list, tuple)):
            return list(messages)
        return []

    @staticmethod
    def from_raw(raw: Any) -> "Checkpoint":
        if isinstance(raw, Checkpoint):
            return raw
        data = to_plain_dict(raw)

        values = data.get("values")
        if values is not None and not isinstance(values, Mapping):
            values = to_plain_dict(values) or None
        elif isinstance(values, Mapping) and not isinstance(values, dict):
            values = dict(values)

        checkpoint_id = None
        checkpoint = data.get("checkpoint")
        if checkpoint is not None:
            checkpoint_id = get_str(checkpoint, "checkpoint_id")

        return Checkpoint(
            values=values,
            next=tuple(str(step) for step in (data.get("next") or ())),
            tasks=tuple(CheckpointTask.from_raw(task) for task in (data.get("tasks") or ())),
            created_at=data.get("created_at") if isinstance(data.get("created_at"), str) else None,
            checkpoint_id=checkpoint_id,
        )


@dataclass(frozen=True, slots=True)
class RunDescriptor:
    run_id: str
    status: str
    thread_id: str | None = None
    created_at: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_RUN_STATUSES

    @staticmethod
    def from_raw(raw: Any) -> "RunDescriptor":
        if isinstance(raw, RunDescriptor):
            return raw
        data = to_plain_dict(raw)
        run_id = data.get("run_id")
        if not isinstance(run_id, str) or not run_id:
            raise ValueError(f"run record without run_id: {data!r}")
        return RunDescriptor(
            run_id=run_id,
            status=str(data.get("status") or ""),
            thread_id=data.get("thread_id") if isinstance(data.get("thread_id"), str) else None,
            created_at=str(data["created_at"]) if data.get("created_at") is not None else None,
        )


@dataclass(frozen=True, slots=True)
class StreamChunk:
    """One backend-native unit of a live stream; `data` shape depends on `event`."""

    event: str
    data: Any = None

    @staticmethod
    def from_raw(raw: Any) -> "StreamChunk":
        if isinstance(raw, StreamChunk):
            return raw
        if isinstance(raw, tuple) and len(raw) == 2 and isinstance(raw[0], str):
            return StreamChunk(event=raw[0], data=raw[1])
        event = get_field(raw, "event")
        if not isinstance(event, str):
            raise ValueError(f"stream chunk without event tag: {raw!r}")
        return StreamChunk(event=event, data=get_field(raw, "data"))


@dataclass(frozen=True, slots=True)
class InterruptSignal:
    """First interrupt payload found on the latest checkpoint."""

    value: Any = None
    raw: dict[str, Any] = field(default_factory=dict)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str = "hydration") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"
