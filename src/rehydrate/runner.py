from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Runner facade: new runs pass through to a per-request agent, reconnects are
served by thread hydration.
"""

import logging
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Protocol, runtime_checkable

from ag_ui.core import BaseEvent, RunAgentInput

from .clients.base import HistoryClient
from .clients.factory import create_history_client
from .clients.langgraph import LangGraphHistoryClient
from .config import CustomClientConfig, HydrationConfig, PlatformConfig
from .errors import ConfigurationError
from .hydration import JoinMemory, ThreadHydration, error_bracket
from .telemetry import NullTelemetrySink, TelemetrySink

logger = logging.getLogger(__name__)

StateExtractor = Callable[[RunAgentInput, Any], dict[str, Any] | None]


@runtime_checkable
class RunnableAgent(Protocol):
    """Downstream agent that executes new runs."""

    def run(self, input_data: RunAgentInput) -> AsyncIterator[BaseEvent]:
        """Stream the events of one run."""
        ...

    def abort_run(self) -> bool | None:
        """Abort the in-flight run, if any."""
        ...


class HistoryHydratingRunner:
    """
    Entry point for hosts serving a protocol client.

    Nothing request-scoped is retained: every `connect` builds its own history
    client and every `run` its own agent from the immutable config. The only
    state shared between requests is the join memory of in-flight runs and
    the set of agents currently running.
    """

    def __init__(
        self,
        config: HydrationConfig,
        *,
        state_extractor: StateExtractor | None = None,
        telemetry: TelemetrySink | None = None,
    ) -> None:
        if not isinstance(config, (PlatformConfig, CustomClientConfig)):
            raise ConfigurationError(
                f"Unsupported hydration config: {type(config).__name__}"
            )
        if state_extractor is not None and not callable(state_extractor):
            raise ConfigurationError("state_extractor must be callable")
        if isinstance(config, PlatformConfig):
            LangGraphHistoryClient.ensure_sdk_available()
        self.config = config
        self.state_extractor = state_extractor
        self.telemetry = telemetry or NullTelemetrySink()
        self.memory = JoinMemory()
        self._active_agents: dict[str, RunnableAgent] = {}

    async def connect(self, thread_id: str) -> AsyncIterator[BaseEvent]:
        """Hydrate `thread_id` and follow its active run, if there is one."""
        try:
            client = create_history_client(self.config)
        except Exception:
            logger.exception("Building a history client for thread %s failed", thread_id)
            self.telemetry.increment_counter(
                "hydration.fallbacks", 1, attributes={"reason": "client"}
            )
            for event in error_bracket(thread_id):
                yield event
            return
        hydration = ThreadHydration(
            client,
            thread_id,
            history_limit=self.config.history_limit,
            memory=self.memory,
            telemetry=self.telemetry,
        )
        try:
            async with aclosing(hydration.events()) as events:
                async for event in events:
                    yield event
        finally:
            if self._owns_clients():
                await _close_client(client)

    async def run(self, input_data: RunAgentInput) -> AsyncIterator[BaseEvent]:
        """Start a new run on a fresh agent with the extracted state merged in."""
        agent = self._create_agent()
        state = self._enriched_state(input_data)
        logger.debug(
            "Starting run on thread %s (state extractor: %s, forwarded props: %s)",
            input_data.thread_id,
            self.state_extractor is not None,
            input_data.forwarded_props is not None,
        )
        enriched = input_data.model_copy(update={"state": state})

        self._active_agents[input_data.thread_id] = agent
        stream: Any = None
        try:
            stream = agent.run(enriched)
            async for event in stream:
                yield event
        finally:
            if self._active_agents.get(input_data.thread_id) is agent:
                del self._active_agents[input_data.thread_id]
            close = getattr(stream, "aclose", None)
            if close is not None:
                await close()

    def stop(self, thread_id: str) -> bool:
        """Abort the run in flight on `thread_id`; `False` when none is."""
        agent = self._active_agents.get(thread_id)
        if agent is None:
            return False
        result = agent.abort_run()
        return result if result is not None else True

    def is_running(self, thread_id: str) -> bool:
        return thread_id in self._active_agents

    def _owns_clients(self) -> bool:
        if isinstance(self.config, CustomClientConfig):
            return self.config.close_clients
        return True

    def _create_agent(self) -> RunnableAgent:
        config = self.config
        if config.agent_factory is None:
            raise ConfigurationError("No agent_factory configured; cannot start new runs")
        if isinstance(config, PlatformConfig):
            return config.agent_factory(config)
        return config.agent_factory()

    def _enriched_state(self, input_data: RunAgentInput) -> Any:
        existing = input_data.state if isinstance(input_data.state, dict) else {}
        if self.state_extractor is None:
            return input_data.state if input_data.state is not None else {}
        extracted = self.state_extractor(input_data, input_data.forwarded_props)
        return {**existing, **(extracted or {})}


async def _close_client(client: HistoryClient) -> None:
    close = getattr(client, "aclose", None)
    if close is None:
        return
    try:
        await close()
    except Exception as e:
        logger.warning("Closing history client failed: %s", e)
