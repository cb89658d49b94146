from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Reads execution status off the latest checkpoint.
"""

from typing import Any, Iterable

from ..types import Checkpoint, InterruptSignal, RunDescriptor


def find_interrupt(checkpoint: Checkpoint | Any) -> InterruptSignal | None:
    """
    Return the first interrupt of the first task that has one.

    Only one interrupt is surfaced even when several tasks are interrupted.
    """
    for task in Checkpoint.from_raw(checkpoint).tasks:
        if task.interrupts:
            first = task.interrupts[0]
            return InterruptSignal(value=first.get("value"), raw=dict(first))
    return None


def is_busy(checkpoint: Checkpoint | Any) -> bool:
    """True when the backend has steps scheduled after this checkpoint."""
    return len(Checkpoint.from_raw(checkpoint).next) > 0


def find_active_run(runs: Iterable[RunDescriptor | Any] | None) -> RunDescriptor | None:
    """First run that is still running or pending, in backend order (newest first)."""
    for raw in runs or ():
        run = RunDescriptor.from_raw(raw)
        if run.is_active:
            return run
    return None
