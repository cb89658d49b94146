from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module provides the public API of rehydrate: thread history hydration and
live-run continuation over the AG-UI protocol.
"""

from .clients import (
    HistoryClient,
    InMemoryHistoryClient,
    LangGraphHistoryClient,
    create_history_client,
)
from .config import (
    DEFAULT_HISTORY_LIMIT,
    MAX_HISTORY_LIMIT,
    CustomClientConfig,
    HydrationConfig,
    PlatformConfig,
    clamp_history_limit,
)
from .errors import ConfigurationError, HydrationError, TransportError, TranslationError
from .events import INTERRUPT_EVENT_NAME, ProtocolEvents
from .history import (
    build_message_log,
    find_active_run,
    find_interrupt,
    is_busy,
    transform_message,
    transform_messages,
)
from .hydration import JoinMemory, ThreadHydration
from .runner import HistoryHydratingRunner, RunnableAgent, StateExtractor
from .stream import StreamChunkTranslator, TranslatorState, classify_chunk
from .telemetry import (
    InMemoryTelemetrySink,
    NullTelemetrySink,
    OpenTelemetrySink,
    TelemetrySink,
)
from .types import (
    Checkpoint,
    CheckpointTask,
    InterruptSignal,
    RunDescriptor,
    StreamChunk,
    new_id,
    now_ms,
)

__all__ = [
    "HistoryHydratingRunner",
    "RunnableAgent",
    "StateExtractor",
    "ThreadHydration",
    "JoinMemory",
    "PlatformConfig",
    "CustomClientConfig",
    "HydrationConfig",
    "DEFAULT_HISTORY_LIMIT",
    "MAX_HISTORY_LIMIT",
    "clamp_history_limit",
    "HistoryClient",
    "LangGraphHistoryClient",
    "InMemoryHistoryClient",
    "create_history_client",
    "HydrationError",
    "TransportError",
    "TranslationError",
    "ConfigurationError",
    "ProtocolEvents",
    "INTERRUPT_EVENT_NAME",
    "build_message_log",
    "transform_message",
    "transform_messages",
    "find_interrupt",
    "is_busy",
    "find_active_run",
    "StreamChunkTranslator",
    "TranslatorState",
    "classify_chunk",
    "TelemetrySink",
    "NullTelemetrySink",
    "InMemoryTelemetrySink",
    "OpenTelemetrySink",
    "Checkpoint",
    "CheckpointTask",
    "InterruptSignal",
    "RunDescriptor",
    "StreamChunk",
    "new_id",
    "now_ms",
]
