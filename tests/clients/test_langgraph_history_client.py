from __future__ import annotations

import asyncio
import sys
import types
from collections import namedtuple

import httpx
import pytest

from rehydrate.clients import LangGraphHistoryClient
from rehydrate.config import PlatformConfig
from rehydrate.errors import TransportError
from rehydrate.types import Checkpoint, RunDescriptor

StreamPart = namedtuple("StreamPart", ["event", "data"])


def run_async(coro):
    return asyncio.run(coro)


class _Threads:
    def __init__(self, sdk: "_FakeSDKClient"):
        self.sdk = sdk

    async def get_history(self, thread_id, limit=10, **kwargs):
        self.sdk.calls.append(("get_history", thread_id, limit))
        if self.sdk.fail:
            raise httpx.ConnectError("connection refused")
        return [
            {
                "values": {"messages": [{"id": "a", "type": "human", "content": "hi"}]},
                "next": ["agent"],
                "tasks": [{"id": "task", "name": "agent", "interrupts": []}],
                "checkpoint": {"checkpoint_id": "cp1"},
                "created_at": "2026-01-01T00:00:00Z",
            }
        ]

    async def get_state(self, thread_id, **kwargs):
        self.sdk.calls.append(("get_state", thread_id))
        if self.sdk.fail:
            raise httpx.ConnectError("connection refused")
        return {"values": {"n": 1}, "next": [], "tasks": []}


class _Runs:
    def __init__(self, sdk: "_FakeSDKClient"):
        self.sdk = sdk

    async def list(self, thread_id, **kwargs):
        self.sdk.calls.append(("list", thread_id))
        if self.sdk.fail:
            raise httpx.ConnectError("connection refused")
        return [
            {"run_id": "r2", "status": "running", "thread_id": thread_id},
            {"status": "success"},
            {"run_id": "r1", "status": "success", "thread_id": thread_id},
        ]

    async def join_stream(self, thread_id, run_id, *, stream_mode=None, **kwargs):
        self.sdk.calls.append(("join_stream", thread_id, run_id, stream_mode))
        try:
            yield StreamPart("metadata", {"run_id": run_id})
            if self.sdk.fail_stream:
                raise httpx.ReadError("stream dropped")
            yield StreamPart("values", {"n": 2})
        finally:
            self.sdk.streams_closed += 1


class _FakeSDKClient:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls: list[tuple] = []
        self.fail = False
        self.fail_stream = False
        self.streams_closed = 0
        self.closed = False
        self.threads = _Threads(self)
        self.runs = _Runs(self)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_langgraph_sdk(monkeypatch):
    module = types.ModuleType("langgraph_sdk")
    created: list[_FakeSDKClient] = []

    def get_client(**kwargs):
        client = _FakeSDKClient(**kwargs)
        created.append(client)
        return client

    module.get_client = get_client
    monkeypatch.setitem(sys.modules, "langgraph_sdk", module)
    return created


def make_client(fake_langgraph_sdk) -> tuple[LangGraphHistoryClient, _FakeSDKClient]:
    config = PlatformConfig(
        deployment_url="https://deploy.example",
        graph_id="agent",
        api_key="lsv2_key",
        timeout_s=30.0,
    )
    client = LangGraphHistoryClient.from_config(config)
    return client, fake_langgraph_sdk[-1]


def test_from_config_passes_connection_settings(fake_langgraph_sdk):
    _, sdk = make_client(fake_langgraph_sdk)

    assert sdk.kwargs == {"url": "https://deploy.example", "api_key": "lsv2_key", "timeout": 30.0}


def test_history_records_become_checkpoints(fake_langgraph_sdk):
    client, sdk = make_client(fake_langgraph_sdk)

    history = run_async(client.get_history("t1", limit=50))

    assert sdk.calls == [("get_history", "t1", 50)]
    assert isinstance(history[0], Checkpoint)
    assert history[0].next == ("agent",)
    assert history[0].checkpoint_id == "cp1"
    assert history[0].tasks[0].name == "agent"


def test_malformed_run_records_are_skipped(fake_langgraph_sdk):
    client, _ = make_client(fake_langgraph_sdk)

    runs = run_async(client.list_runs("t1"))

    assert runs == [
        RunDescriptor(run_id="r2", status="running", thread_id="t1"),
        RunDescriptor(run_id="r1", status="success", thread_id="t1"),
    ]


def test_http_errors_map_to_transport_error(fake_langgraph_sdk):
    client, sdk = make_client(fake_langgraph_sdk)
    sdk.fail = True

    with pytest.raises(TransportError):
        run_async(client.get_history("t1", limit=10))
    with pytest.raises(TransportError):
        run_async(client.get_state("t1"))
    with pytest.raises(TransportError):
        run_async(client.list_runs("t1"))


def test_join_stream_requests_modes_and_yields_parts(fake_langgraph_sdk):
    client, sdk = make_client(fake_langgraph_sdk)

    async def scenario():
        return [
            part
            async for part in client.join_stream(
                "t1", "r2", stream_modes=("events", "values", "updates", "custom")
            )
        ]

    parts = run_async(scenario())

    assert [part.event for part in parts] == ["metadata", "values"]
    assert sdk.calls[-1] == ("join_stream", "t1", "r2", ["events", "values", "updates", "custom"])
    assert sdk.streams_closed == 1


def test_closing_join_stream_early_closes_the_sdk_stream(fake_langgraph_sdk):
    client, sdk = make_client(fake_langgraph_sdk)

    async def scenario():
        stream = client.join_stream("t1", "r2", stream_modes=("values",))
        first = await stream.__anext__()
        await stream.aclose()
        return first

    first = run_async(scenario())

    assert first.event == "metadata"
    assert sdk.streams_closed == 1


def test_join_stream_failure_maps_to_transport_error(fake_langgraph_sdk):
    client, sdk = make_client(fake_langgraph_sdk)
    sdk.fail_stream = True

    async def scenario():
        async for _ in client.join_stream("t1", "r2", stream_modes=("values",)):
            pass

    with pytest.raises(TransportError):
        run_async(scenario())


def test_aclose_closes_sdk_client(fake_langgraph_sdk):
    client, sdk = make_client(fake_langgraph_sdk)

    run_async(client.aclose())

    assert sdk.closed is True
