from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

`langgraph-sdk`-backed history client.

Wraps the SDK's `threads` and `runs` sub-clients and normalizes their dict
records into `Checkpoint` and `RunDescriptor`. HTTP failures surface as
`TransportError`.
"""

import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Sequence

import httpx

from ..errors import ConfigurationError, TransportError
from ..types import Checkpoint, RunDescriptor, StreamMode

if TYPE_CHECKING:
    from ..config import PlatformConfig

logger = logging.getLogger(__name__)


class LangGraphHistoryClient:
    """Concrete `HistoryClient` over a `langgraph_sdk` client instance."""

    def __init__(self, sdk_client: Any) -> None:
        self._sdk = sdk_client

    @staticmethod
    def _load_sdk_api() -> Any:
        """Import `get_client` with a clear config error."""
        try:
            from langgraph_sdk import get_client
        except Exception as e:
            raise ConfigurationError(
                "langgraph-sdk is not installed. Install it with: pip install langgraph-sdk"
            ) from e
        return get_client

    @classmethod
    def ensure_sdk_available(cls) -> None:
        """Fail fast when `langgraph-sdk` cannot be imported."""
        cls._load_sdk_api()

    @classmethod
    def from_config(cls, config: "PlatformConfig") -> "LangGraphHistoryClient":
        get_client = cls._load_sdk_api()
        sdk_client = get_client(
            url=config.deployment_url,
            api_key=config.api_key,
            timeout=config.timeout_s,
        )
        return cls(sdk_client)

    async def get_history(self, thread_id: str, *, limit: int) -> list[Checkpoint]:
        try:
            records = await self._sdk.threads.get_history(thread_id, limit=limit)
        except httpx.HTTPError as e:
            raise TransportError(f"get_history failed for thread {thread_id}: {e}") from e
        return [Checkpoint.from_raw(record) for record in records or ()]

    async def get_state(self, thread_id: str) -> Checkpoint:
        try:
            record = await self._sdk.threads.get_state(thread_id)
        except httpx.HTTPError as e:
            raise TransportError(f"get_state failed for thread {thread_id}: {e}") from e
        return Checkpoint.from_raw(record)

    async def list_runs(self, thread_id: str) -> list[RunDescriptor]:
        try:
            records = await self._sdk.runs.list(thread_id)
        except httpx.HTTPError as e:
            raise TransportError(f"list_runs failed for thread {thread_id}: {e}") from e

        runs: list[RunDescriptor] = []
        for record in records or ():
            try:
                runs.append(RunDescriptor.from_raw(record))
            except ValueError as e:
                logger.warning("Ignoring malformed run record on thread %s: %s", thread_id, e)
        return runs

    async def join_stream(
        self,
        thread_id: str,
        run_id: str,
        *,
        stream_modes: Sequence[StreamMode],
    ) -> AsyncIterator[Any]:
        stream: Any = None
        try:
            stream = self._sdk.runs.join_stream(
                thread_id,
                run_id,
                stream_mode=list(stream_modes),
            )
            async for part in stream:
                yield part
        except httpx.HTTPError as e:
            raise TransportError(f"join_stream failed for run {run_id}: {e}") from e
        finally:
            # Releases the open HTTP response when the consumer stops early.
            close = getattr(stream, "aclose", None)
            if close is not None:
                await close()

    async def aclose(self) -> None:
        """Release the SDK's HTTP connection pool."""
        close = getattr(self._sdk, "aclose", None)
        if close is not None:
            await close()
            return
        http = getattr(getattr(self._sdk, "http", None), "client", None)
        if http is not None:
            await http.aclose()
