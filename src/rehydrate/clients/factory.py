from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module builds a history client from a hydration config variant.
"""

from ..config import CustomClientConfig, HydrationConfig, PlatformConfig
from ..errors import ConfigurationError
from .base import HistoryClient
from .langgraph import LangGraphHistoryClient


def create_history_client(config: HydrationConfig) -> HistoryClient:
    """Create a new client for one request; never cached across requests."""
    if isinstance(config, PlatformConfig):
        return LangGraphHistoryClient.from_config(config)

    if isinstance(config, CustomClientConfig):
        client = config.client_factory()
        if client is None:
            raise ConfigurationError("client_factory returned None")
        return client

    raise ConfigurationError(f"Unsupported hydration config: {type(config).__name__}")
