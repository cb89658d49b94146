from __future__ import annotations

import pytest

from rehydrate.clients import InMemoryHistoryClient
from rehydrate.config import (
    DEFAULT_CLIENT_TIMEOUT_S,
    DEFAULT_HISTORY_LIMIT,
    MAX_HISTORY_LIMIT,
    CustomClientConfig,
    PlatformConfig,
    clamp_history_limit,
)
from rehydrate.errors import ConfigurationError, HydrationError


def test_platform_config_defaults():
    config = PlatformConfig(deployment_url="http://localhost:8123", graph_id="agent")

    assert config.api_key is None
    assert config.timeout_s == DEFAULT_CLIENT_TIMEOUT_S
    assert config.history_limit == DEFAULT_HISTORY_LIMIT


@pytest.mark.parametrize(
    "kwargs",
    [
        {"deployment_url": "", "graph_id": "agent"},
        {"deployment_url": "http://x", "graph_id": ""},
        {"deployment_url": "http://x", "graph_id": "agent", "timeout_s": 0},
        {"deployment_url": "http://x", "graph_id": "agent", "history_limit": -1},
    ],
)
def test_platform_config_rejects_missing_identifiers(kwargs):
    with pytest.raises(ConfigurationError):
        PlatformConfig(**kwargs)


def test_platform_config_from_env(monkeypatch):
    monkeypatch.setenv("REHYDRATE_DEPLOYMENT_URL", "https://deploy.example")
    monkeypatch.setenv("REHYDRATE_GRAPH_ID", "support")
    monkeypatch.setenv("LANGSMITH_API_KEY", "lsv2_x")
    monkeypatch.setenv("REHYDRATE_CLIENT_TIMEOUT_S", "60")
    monkeypatch.setenv("REHYDRATE_HISTORY_LIMIT", "250")

    config = PlatformConfig.from_env()

    assert config.deployment_url == "https://deploy.example"
    assert config.graph_id == "support"
    assert config.api_key == "lsv2_x"
    assert config.timeout_s == 60.0
    assert config.history_limit == 250


def test_platform_config_from_env_requires_url(monkeypatch):
    monkeypatch.delenv("REHYDRATE_DEPLOYMENT_URL", raising=False)
    monkeypatch.setenv("REHYDRATE_GRAPH_ID", "support")

    with pytest.raises(ConfigurationError):
        PlatformConfig.from_env()


def test_custom_config_requires_callable_factory():
    with pytest.raises(ConfigurationError):
        CustomClientConfig(client_factory=InMemoryHistoryClient())
    with pytest.raises(ConfigurationError):
        CustomClientConfig(client_factory=InMemoryHistoryClient, agent_factory="agent")
    with pytest.raises(ConfigurationError):
        CustomClientConfig.from_client(None)


def test_configs_are_immutable():
    config = CustomClientConfig(client_factory=InMemoryHistoryClient)

    with pytest.raises(AttributeError):
        config.history_limit = 5


def test_clamp_history_limit():
    assert clamp_history_limit(0) == 0
    assert clamp_history_limit(50) == 50
    assert clamp_history_limit(MAX_HISTORY_LIMIT + 500) == MAX_HISTORY_LIMIT
    with pytest.raises(ConfigurationError):
        clamp_history_limit(-1)
    with pytest.raises(ConfigurationError):
        clamp_history_limit(True)
    with pytest.raises(ConfigurationError):
        clamp_history_limit("10")


def test_error_taxonomy_shares_a_base():
    assert issubclass(ConfigurationError, HydrationError)
