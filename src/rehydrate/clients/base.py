from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines the history-client contract consumed by hydration.
"""

from typing import Any, AsyncIterator, Protocol, Sequence, runtime_checkable

from ..types import Checkpoint, RunDescriptor, StreamMode


@runtime_checkable
class HistoryClient(Protocol):
    """
    Minimal backend surface needed to hydrate and resume a thread.

    Implementations raise `TransportError` for backend or network failures.
    `join_stream` yields raw chunks; the caller coerces them through
    `StreamChunk.from_raw`, so `(event, data)` tuples are acceptable.
    """

    async def get_history(self, thread_id: str, *, limit: int) -> list[Checkpoint]:
        """Return checkpoints newest-first, at most `limit` of them."""

    async def get_state(self, thread_id: str) -> Checkpoint:
        """Return the latest checkpoint."""

    async def list_runs(self, thread_id: str) -> list[RunDescriptor]:
        """Return runs newest-first."""

    def join_stream(
        self,
        thread_id: str,
        run_id: str,
        *,
        stream_modes: Sequence[StreamMode],
    ) -> AsyncIterator[Any]:
        """Attach to an in-flight run and iterate its remaining output."""
