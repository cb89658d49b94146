from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

History reconstruction: message log, transformation and checkpoint inspection.
"""

from .inspector import find_active_run, find_interrupt, is_busy
from .log_builder import build_message_log, message_id
from .transformer import UnsupportedMessageError, transform_message, transform_messages

__all__ = [
    "build_message_log",
    "message_id",
    "transform_message",
    "transform_messages",
    "UnsupportedMessageError",
    "find_interrupt",
    "is_busy",
    "find_active_run",
]
