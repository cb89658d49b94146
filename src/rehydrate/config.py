from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Configuration variants for building a history client per request.
"""

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, TypeAlias

from .errors import ConfigurationError

if TYPE_CHECKING:
    from .clients.base import HistoryClient
    from .runner import RunnableAgent


DEFAULT_HISTORY_LIMIT = 100
# The platform history endpoint rejects larger limits.
MAX_HISTORY_LIMIT = 1000
DEFAULT_CLIENT_TIMEOUT_S = 1800.0


@dataclass(frozen=True, slots=True)
class PlatformConfig:
    """
    Hosted platform deployment: history calls go through `langgraph-sdk`.

    A fresh SDK client, and a fresh agent when `agent_factory` is set, are
    built from this record for every request.
    """

    deployment_url: str
    graph_id: str
    api_key: str | None = None
    timeout_s: float = DEFAULT_CLIENT_TIMEOUT_S
    history_limit: int = DEFAULT_HISTORY_LIMIT
    agent_factory: "Callable[[PlatformConfig], RunnableAgent] | None" = None

    def __post_init__(self) -> None:
        if not self.deployment_url:
            raise ConfigurationError("PlatformConfig: deployment_url is required")
        if not self.graph_id:
            raise ConfigurationError("PlatformConfig: graph_id is required")
        if self.timeout_s <= 0:
            raise ConfigurationError("PlatformConfig: timeout_s must be positive")
        clamp_history_limit(self.history_limit)

    @staticmethod
    def from_env() -> "PlatformConfig":
        return PlatformConfig(
            deployment_url=os.getenv("REHYDRATE_DEPLOYMENT_URL", ""),
            graph_id=os.getenv("REHYDRATE_GRAPH_ID", ""),
            api_key=os.getenv("LANGSMITH_API_KEY"),
            timeout_s=float(
                os.getenv("REHYDRATE_CLIENT_TIMEOUT_S", str(DEFAULT_CLIENT_TIMEOUT_S))
            ),
            history_limit=int(
                os.getenv("REHYDRATE_HISTORY_LIMIT", str(DEFAULT_HISTORY_LIMIT))
            ),
        )


@dataclass(frozen=True, slots=True)
class CustomClientConfig:
    """
    Self-hosted backend exposing only the history subset of the platform API.

    `client_factory` is called once per request; it should return a new
    `HistoryClient` unless the caller knows the instance is safe to share.
    Clients are closed after each hydration when `close_clients` is set;
    `from_client` clears it so a shared instance stays open.
    """

    client_factory: "Callable[[], HistoryClient]"
    history_limit: int = DEFAULT_HISTORY_LIMIT
    agent_factory: "Callable[[], RunnableAgent] | None" = None
    close_clients: bool = True

    def __post_init__(self) -> None:
        if not callable(self.client_factory):
            raise ConfigurationError("CustomClientConfig: client_factory must be callable")
        if self.agent_factory is not None and not callable(self.agent_factory):
            raise ConfigurationError("CustomClientConfig: agent_factory must be callable")
        clamp_history_limit(self.history_limit)

    @staticmethod
    def from_client(
        client: "HistoryClient",
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        agent_factory: "Callable[[], RunnableAgent] | None" = None,
    ) -> "CustomClientConfig":
        """Wrap an existing client instance; it is reused across requests."""
        if client is None:
            raise ConfigurationError("CustomClientConfig: client is required")
        return CustomClientConfig(
            client_factory=lambda: client,
            history_limit=history_limit,
            agent_factory=agent_factory,
            close_clients=False,
        )


HydrationConfig: TypeAlias = PlatformConfig | CustomClientConfig


def clamp_history_limit(limit: int) -> int:
    """
    Bound a history limit to what the backend accepts.

    `0` disables post-deduplication trimming; negative values are rejected.
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ConfigurationError(f"history_limit must be an integer, got {limit!r}")
    if limit < 0:
        raise ConfigurationError(f"history_limit must not be negative, got {limit}")
    return min(limit, MAX_HISTORY_LIMIT)
