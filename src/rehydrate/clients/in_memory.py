from __future__ import annotations

"""In-process history client for local development and tests."""

import asyncio
from typing import Any, AsyncIterator, Sequence

from ..errors import TransportError
from ..types import Checkpoint, RunDescriptor, StreamMode


class InMemoryHistoryClient:
    """
    Scripted `HistoryClient`.

    Checkpoints and runs are stored newest-first, the order the platform
    returns them in. `fail(method)` makes the next and every later call to
    that method raise `TransportError` until `recover(method)`.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._history: dict[str, list[Checkpoint]] = {}
        self._state: dict[str, Checkpoint] = {}
        self._runs: dict[str, list[RunDescriptor]] = {}
        self._streams: dict[tuple[str, str], list[Any]] = {}
        self._stream_failures: dict[tuple[str, str], Exception] = {}
        self._failing: set[str] = set()
        self.history_limits: list[int] = []
        self.chunks_read = 0
        self.joined: list[tuple[str, str, tuple[str, ...]]] = []
        self.closed_streams: list[tuple[str, str]] = []
        self.closed = False

    def add_checkpoint(self, thread_id: str, checkpoint: Any) -> Checkpoint:
        """Record a new latest checkpoint; it also becomes the thread state."""
        record = Checkpoint.from_raw(checkpoint)
        self._history.setdefault(thread_id, []).insert(0, record)
        self._state[thread_id] = record
        return record

    def set_state(self, thread_id: str, checkpoint: Any) -> None:
        self._state[thread_id] = Checkpoint.from_raw(checkpoint)

    def add_run(self, thread_id: str, run_id: str, status: str = "running") -> RunDescriptor:
        run = RunDescriptor(run_id=run_id, status=status, thread_id=thread_id)
        self._runs.setdefault(thread_id, []).insert(0, run)
        return run

    def set_stream(
        self,
        thread_id: str,
        run_id: str,
        chunks: Sequence[Any],
        *,
        fail_with: Exception | None = None,
    ) -> None:
        """Script the chunks `join_stream` yields, optionally ending in an error."""
        self._streams[(thread_id, run_id)] = list(chunks)
        if fail_with is not None:
            self._stream_failures[(thread_id, run_id)] = fail_with
        else:
            self._stream_failures.pop((thread_id, run_id), None)

    def fail(self, method: str) -> None:
        self._failing.add(method)

    def recover(self, method: str) -> None:
        self._failing.discard(method)

    def _check(self, method: str, thread_id: str) -> None:
        if method in self._failing:
            raise TransportError(f"{method} failed for thread {thread_id}")

    async def get_history(self, thread_id: str, *, limit: int) -> list[Checkpoint]:
        self._check("get_history", thread_id)
        async with self._lock:
            self.history_limits.append(limit)
            return list(self._history.get(thread_id, [])[:limit])

    async def get_state(self, thread_id: str) -> Checkpoint:
        self._check("get_state", thread_id)
        async with self._lock:
            return self._state.get(thread_id, Checkpoint())

    async def list_runs(self, thread_id: str) -> list[RunDescriptor]:
        self._check("list_runs", thread_id)
        async with self._lock:
            return list(self._runs.get(thread_id, []))

    async def join_stream(
        self,
        thread_id: str,
        run_id: str,
        *,
        stream_modes: Sequence[StreamMode],
    ) -> AsyncIterator[Any]:
        self._check("join_stream", thread_id)
        key = (thread_id, run_id)
        self.joined.append((thread_id, run_id, tuple(stream_modes)))
        try:
            for chunk in list(self._streams.get(key, [])):
                self.chunks_read += 1
                yield chunk
            failure = self._stream_failures.get(key)
            if failure is not None:
                raise failure
        finally:
            self.closed_streams.append(key)

    async def aclose(self) -> None:
        self.closed = True
