from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Reconnect-time hydration of one thread.

`ThreadHydration.events()` replays the persisted thread as a protocol event
sequence and, when a run is still executing, joins its live stream:

1. fetch checkpoint history;
2. empty history goes to the fallback sequence;
3. rebuild the message log and pick the run id;
4. emit RUN_STARTED, MESSAGES_SNAPSHOT, STATE_SNAPSHOT and an interrupt event;
5. if the thread is busy and a run is active, join it, else RUN_FINISHED.

Every exit path closes the RUN_STARTED/RUN_FINISHED bracket.
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from ag_ui.core import BaseEvent, EventType

from .clients.base import HistoryClient
from .config import DEFAULT_HISTORY_LIMIT, clamp_history_limit
from .errors import TransportError
from .events import ProtocolEvents
from .history import (
    build_message_log,
    find_active_run,
    find_interrupt,
    is_busy,
    transform_messages,
)
from .stream import StreamChunkTranslator
from .telemetry import NullTelemetrySink, TelemetrySink
from .types import JOIN_STREAM_MODES, Checkpoint, RunDescriptor, StreamChunk, new_id

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class JoinMemory:
    """
    State pushed ahead of a checkpoint, keyed by `(thread_id, run_id)`.

    Carried from one join of a run to the next so a reconnect does not
    re-announce a snapshot the client already received. An entry is dropped
    when its join ends with the thread idle, and every entry of a thread is
    dropped once a hydration finds no active run on it.
    """

    _states: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)

    def get(self, thread_id: str, run_id: str) -> dict[str, Any] | None:
        return self._states.get((thread_id, run_id))

    def remember(self, thread_id: str, run_id: str, state: dict[str, Any] | None) -> None:
        if state is None:
            self._states.pop((thread_id, run_id), None)
            return
        self._states[(thread_id, run_id)] = state

    def forget_thread(self, thread_id: str) -> None:
        for key in [key for key in self._states if key[0] == thread_id]:
            del self._states[key]

    def __len__(self) -> int:
        return len(self._states)


def error_bracket(thread_id: str) -> list[BaseEvent]:
    """Fallback sequence for a request that failed before hydration could start."""
    protocol = ProtocolEvents(thread_id=thread_id, run_id=new_id("hydration_error"))
    return [
        protocol.run_started(),
        protocol.messages_snapshot([]),
        protocol.run_finished(),
    ]


class ThreadHydration:
    """One reconnect request for one thread; not reusable."""

    def __init__(
        self,
        client: HistoryClient,
        thread_id: str,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        memory: JoinMemory | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self.client = client
        self.thread_id = thread_id
        self.history_limit = clamp_history_limit(history_limit)
        self.memory = memory if memory is not None else JoinMemory()
        self.telemetry = telemetry or NullTelemetrySink()
        self._protocol = ProtocolEvents(thread_id=thread_id, run_id="")
        self._outcome = "ok"

    async def events(self) -> AsyncIterator[BaseEvent]:
        """
        Yield the hydration event sequence.

        Never raises for backend failures: an unexpected error before
        RUN_STARTED yields the fallback sequence, after RUN_STARTED it yields
        the missing RUN_FINISHED. Closing the generator stops stream reads.
        """
        span = self.telemetry.start_span(
            "hydration.connect", attributes={"thread_id": self.thread_id}
        )
        started = False
        finished = False
        error: str | None = None
        try:
            async with aclosing(self._flow()) as flow:
                async for event in flow:
                    if event.type == EventType.RUN_STARTED:
                        started = True
                    elif event.type == EventType.RUN_FINISHED:
                        finished = True
                    yield event
        except Exception as e:
            logger.exception("Hydration of thread %s failed", self.thread_id)
            error = str(e)
            self._outcome = "fallback"
            self.telemetry.increment_counter(
                "hydration.fallbacks", 1, attributes={"reason": "error"}
            )
            if not started:
                for event in self._fallback(new_id("hydration_error")):
                    yield event
            elif not finished:
                yield self._protocol.run_finished()
        finally:
            self.telemetry.end_span(
                span,
                status=self._outcome,
                error=error,
                attributes={"run_id": self._protocol.run_id},
            )

    def _fallback(self, run_id: str) -> list[BaseEvent]:
        self._protocol.run_id = run_id
        return [
            self._protocol.run_started(),
            self._protocol.messages_snapshot([]),
            self._protocol.run_finished(),
        ]

    async def _flow(self) -> AsyncIterator[BaseEvent]:
        limit = self.history_limit if self.history_limit > 0 else DEFAULT_HISTORY_LIMIT
        history = await self.client.get_history(self.thread_id, limit=limit)

        if not history:
            logger.warning("Thread %s has no history; emitting empty hydration", self.thread_id)
            self._outcome = "fallback"
            self.telemetry.increment_counter(
                "hydration.fallbacks", 1, attributes={"reason": "empty"}
            )
            for event in self._fallback(new_id("hydration")):
                yield event
            return

        latest = Checkpoint.from_raw(history[0])
        log = build_message_log(history, self.history_limit)
        messages = transform_messages(log, telemetry=self.telemetry)
        self.telemetry.record_histogram(
            "hydration.messages", len(messages), attributes={"thread_id": self.thread_id}
        )
        logger.debug(
            "Thread %s: %d checkpoints, %d messages after dedup, %d transformed",
            self.thread_id,
            len(history),
            len(log),
            len(messages),
        )

        self._protocol.run_id = await self._latest_run_id()

        yield self._protocol.run_started()
        yield self._protocol.messages_snapshot(messages)
        if latest.values:
            yield self._protocol.state_snapshot(latest.values)
        interrupt = find_interrupt(latest)
        if interrupt is not None:
            yield self._protocol.interrupt(interrupt)

        active = await self._active_run() if is_busy(latest) else None
        if active is None:
            self.memory.forget_thread(self.thread_id)
            yield self._protocol.run_finished()
            return

        async with aclosing(self._join(active)) as joined:
            async for event in joined:
                yield event

    async def _latest_run_id(self) -> str:
        try:
            runs = await self.client.list_runs(self.thread_id)
        except Exception as e:
            logger.warning("Listing runs for thread %s failed: %s", self.thread_id, e)
            return new_id("hydration")
        for raw in runs or ():
            try:
                return RunDescriptor.from_raw(raw).run_id
            except ValueError as e:
                logger.warning("Ignoring malformed run on thread %s: %s", self.thread_id, e)
        return new_id("hydration")

    async def _active_run(self) -> RunDescriptor | None:
        try:
            runs = await self.client.list_runs(self.thread_id)
            return find_active_run(runs)
        except Exception as e:
            logger.warning(
                "Active-run lookup for thread %s failed; treating as idle: %s", self.thread_id, e
            )
            return None

    async def _join(self, run: RunDescriptor) -> AsyncIterator[BaseEvent]:
        translator = StreamChunkTranslator(
            thread_id=self.thread_id,
            run_id=run.run_id,
            manually_emitted_state=self.memory.get(self.thread_id, run.run_id),
        )
        self._protocol.run_id = run.run_id
        logger.info("Joining active run %s on thread %s", run.run_id, self.thread_id)

        stream_failed = False
        stream = self.client.join_stream(
            self.thread_id, run.run_id, stream_modes=JOIN_STREAM_MODES
        )
        try:
            async for raw in stream:
                self.telemetry.increment_counter("hydration.chunks", 1)
                try:
                    events = translator.translate(StreamChunk.from_raw(raw))
                except Exception as e:
                    logger.warning(
                        "Skipping untranslatable chunk on run %s: %s", translator.run_id, e
                    )
                    self.telemetry.increment_counter("hydration.chunk_errors", 1)
                    continue
                self._protocol.run_id = translator.run_id
                for event in events:
                    yield event
        except Exception as e:
            stream_failed = True
            logger.error("Stream join for run %s failed: %s", run.run_id, e)
        finally:
            close = getattr(stream, "aclose", None)
            if close is not None:
                await close()

        for event in translator.close_open():
            yield event

        run_over = False
        interrupt = None
        if not stream_failed:
            try:
                final = await self.client.get_state(self.thread_id)
            except TransportError as e:
                logger.warning("Final state fetch for thread %s failed: %s", self.thread_id, e)
            else:
                run_over = not is_busy(final)
                interrupt = find_interrupt(final)

        # A finished run is never joined again.
        self.memory.remember(
            self.thread_id,
            run.run_id,
            None if run_over else translator.manually_emitted_state,
        )
        if interrupt is not None:
            yield self._protocol.interrupt(interrupt)

        yield self._protocol.run_finished()
