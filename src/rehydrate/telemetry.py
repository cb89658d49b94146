from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Where hydration reports its measurements.

`ThreadHydration` opens one `hydration.connect` span per reconnect and bumps
the `hydration.*` counters and the message-count histogram. `NullTelemetrySink`
drops all of it, `InMemoryTelemetrySink` keeps it for assertions and
`OpenTelemetrySink` hands it to the global OTel providers when installed.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from .types import JSONValue, now_ms

logger = logging.getLogger(__name__)

Attributes = dict[str, JSONValue]


@dataclass(frozen=True, slots=True)
class TelemetrySpan:
    """Open `hydration.connect` span; `native_span` is set by OTel only."""

    name: str
    started_at_ms: int
    attributes: Attributes = field(default_factory=dict)
    native_span: Any = None


class TelemetrySink(Protocol):
    def start_span(self, name: str, *, attributes: Attributes | None = None) -> TelemetrySpan | None:
        """`None` means the sink does not track spans."""
        ...

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: Attributes | None = None,
    ) -> None:
        """`status` is the hydration outcome: `ok` or `fallback`."""
        ...

    def increment_counter(
        self, name: str, value: int = 1, *, attributes: Attributes | None = None
    ) -> None: ...

    def record_histogram(
        self, name: str, value: float, *, attributes: Attributes | None = None
    ) -> None: ...


class NullTelemetrySink:
    """Default sink; every measurement is discarded."""

    def start_span(self, name, *, attributes=None):
        return None

    def end_span(self, span, *, status, error=None, attributes=None):
        pass

    def increment_counter(self, name, value=1, *, attributes=None):
        pass

    def record_histogram(self, name, value, *, attributes=None):
        pass


@dataclass(slots=True)
class InMemoryTelemetrySink:
    """Keeps finished spans and every recorded value in arrival order."""

    _closed: list[dict[str, Any]] = field(default_factory=list)
    _recorded: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {"counter": [], "histogram": []}
    )

    def start_span(self, name: str, *, attributes: Attributes | None = None) -> TelemetrySpan:
        return TelemetrySpan(name, now_ms(), dict(attributes or {}))

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: Attributes | None = None,
    ) -> None:
        if span is None:
            return
        self._closed.append(
            {
                "name": span.name,
                "started_at_ms": span.started_at_ms,
                "ended_at_ms": now_ms(),
                "status": status,
                "error": error,
                "attributes": {**span.attributes, **(attributes or {})},
            }
        )

    def increment_counter(
        self, name: str, value: int = 1, *, attributes: Attributes | None = None
    ) -> None:
        self._record("counter", name, int(value), attributes)

    def record_histogram(
        self, name: str, value: float, *, attributes: Attributes | None = None
    ) -> None:
        self._record("histogram", name, float(value), attributes)

    def _record(self, kind: str, name: str, value: Any, attributes: Attributes | None) -> None:
        self._recorded[kind].append({"name": name, "value": value, "attributes": dict(attributes or {})})

    def spans(self) -> list[dict[str, Any]]:
        return list(self._closed)

    def counter_total(self, name: str) -> int:
        return sum(item["value"] for item in self._recorded["counter"] if item["name"] == name)

    def histograms(self) -> list[dict[str, Any]]:
        return list(self._recorded["histogram"])


@dataclass(slots=True)
class OpenTelemetrySink:
    """
    Forwards hydration measurements to the global tracer and meter.

    `opentelemetry` is imported on first use. When it is missing, or any
    OTel call fails, the measurement is dropped and hydration carries on.
    """

    scope: str = "rehydrate.hydration"

    _tracer: Any = field(default=None, init=False, repr=False)
    _meter: Any = field(default=None, init=False, repr=False)
    _instruments: dict[tuple[str, str], Any] = field(default_factory=dict, init=False, repr=False)

    def _providers(self) -> tuple[Any, Any]:
        if self._tracer is None:
            from opentelemetry import metrics, trace

            self._tracer = trace.get_tracer(self.scope)
            self._meter = metrics.get_meter(self.scope)
        return self._tracer, self._meter

    def _instrument(self, kind: str, name: str) -> Any:
        key = (kind, name)
        if key not in self._instruments:
            _, meter = self._providers()
            create = meter.create_counter if kind == "counter" else meter.create_histogram
            self._instruments[key] = create(name)
        return self._instruments[key]

    def start_span(self, name: str, *, attributes: Attributes | None = None) -> TelemetrySpan | None:
        try:
            tracer, _ = self._providers()
            native = tracer.start_span(name=name, attributes=_otel_attributes(attributes))
        except Exception as e:
            logger.debug("OTel span %s not started: %s", name, e)
            return None
        return TelemetrySpan(name, now_ms(), dict(attributes or {}), native)

    def end_span(
        self,
        span: TelemetrySpan | None,
        *,
        status: str,
        error: str | None = None,
        attributes: Attributes | None = None,
    ) -> None:
        if span is None or span.native_span is None:
            return
        try:
            from opentelemetry.trace import Status, StatusCode

            native = span.native_span
            native.set_attributes(_otel_attributes({**span.attributes, **(attributes or {})}))
            if error:
                native.record_exception(Exception(error))
            # A fallback bracket is still a served request.
            if status in ("ok", "fallback"):
                native.set_status(Status(StatusCode.OK))
            else:
                native.set_status(Status(StatusCode.ERROR, error or status))
            native.end()
        except Exception as e:
            logger.debug("OTel span %s not ended: %s", span.name, e)

    def increment_counter(
        self, name: str, value: int = 1, *, attributes: Attributes | None = None
    ) -> None:
        try:
            self._instrument("counter", name).add(int(value), attributes=_otel_attributes(attributes))
        except Exception as e:
            logger.debug("OTel counter %s dropped: %s", name, e)

    def record_histogram(
        self, name: str, value: float, *, attributes: Attributes | None = None
    ) -> None:
        try:
            self._instrument("histogram", name).record(
                float(value), attributes=_otel_attributes(attributes)
            )
        except Exception as e:
            logger.debug("OTel histogram %s dropped: %s", name, e)


def _otel_attributes(attributes: Attributes | None) -> dict[str, Any]:
    """Hydration attributes are ids and reasons; anything else is stringified."""
    return {
        key: value if isinstance(value, (str, int, float, bool)) else str(value)
        for key, value in (attributes or {}).items()
        if value is not None
    }
