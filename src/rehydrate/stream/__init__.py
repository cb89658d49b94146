from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Live stream continuation: chunk classification and event translation.
"""

from .chunks import ChunkVariant, classify_chunk
from .translator import StreamChunkTranslator, TranslatorState

__all__ = [
    "ChunkVariant",
    "classify_chunk",
    "StreamChunkTranslator",
    "TranslatorState",
]
