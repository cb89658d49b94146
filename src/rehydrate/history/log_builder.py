from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Rebuilds a chronological, deduplicated message log from cumulative checkpoints.
"""

import logging
from typing import Any, Iterable

from ..normalization import get_field
from ..types import Checkpoint

logger = logging.getLogger(__name__)


def message_id(message: Any) -> str | None:
    value = get_field(message, "id")
    return value if isinstance(value, str) and value else None


def build_message_log(
    checkpoints: Iterable[Checkpoint | Any] | None,
    history_limit: int,
) -> list[Any]:
    """
    Flatten newest-first checkpoints into an oldest-first list of raw messages.

    The same message reappears verbatim in every later checkpoint, so only the
    first occurrence of each id is kept. `history_limit > 0` keeps the most
    recent unique messages; the limit is applied after deduplication.
    """
    if not checkpoints:
        return []

    ordered = [Checkpoint.from_raw(item) for item in checkpoints]
    ordered.reverse()

    seen: set[str] = set()
    log: list[Any] = []
    dropped = 0
    for checkpoint in ordered:
        for message in checkpoint.messages:
            msg_id = message_id(message)
            if msg_id is None:
                dropped += 1
                continue
            if msg_id in seen:
                continue
            seen.add(msg_id)
            log.append(message)

    if dropped:
        logger.debug("Dropped %d messages without an id while rebuilding history", dropped)

    if history_limit > 0:
        return log[-history_limit:]
    return log
