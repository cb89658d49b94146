from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

History clients: the backend contract plus platform and in-process implementations.
"""

from .base import HistoryClient
from .factory import create_history_client
from .in_memory import InMemoryHistoryClient
from .langgraph import LangGraphHistoryClient

__all__ = [
    "HistoryClient",
    "create_history_client",
    "InMemoryHistoryClient",
    "LangGraphHistoryClient",
]
