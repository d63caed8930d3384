"""Trace events emitted for each traced HTTP exchange."""

import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from opcxmlda.observability.logging import get_logger

logger = get_logger(__name__)


class TraceEvent(BaseModel):
    """A point-in-time observation of one exchange.

    `fields` keeps the order in which the phase reported them.
    """

    model_config = ConfigDict(frozen=True)

    exchange_id: int = Field(..., description="Per-transport exchange sequence number")
    phase: str = Field(..., description="Exchange phase, e.g. 'request' or 'tls handshake done'")
    elapsed: float = Field(..., description="Seconds since the exchange started")
    fields: dict[str, Any] = Field(default_factory=dict, description="Phase-specific fields")


TraceSink = Callable[[TraceEvent], None]


class LoggingTraceSink:
    """Sink that writes each event as a structured log line."""

    def __init__(self) -> None:
        self._logger = get_logger("opcxmlda.net").bind(component="net")

    def __call__(self, event: TraceEvent) -> None:
        self._logger.info(
            f"http {event.phase}",
            id=event.exchange_id,
            elapsed_ms=round(event.elapsed * 1000, 3),
            **event.fields,
        )


class ExchangeEmitter:
    """Stamps events for one exchange and hands them to the sink.

    Sink failures are logged and dropped so tracing never changes the
    outcome of the exchange.
    """

    def __init__(self, sink: TraceSink, exchange_id: int, start: float) -> None:
        self.sink = sink
        self.exchange_id = exchange_id
        self.start = start

    def elapsed(self) -> float:
        return time.perf_counter() - self.start

    def __call__(self, phase: str, **fields: Any) -> None:
        event = TraceEvent(
            exchange_id=self.exchange_id,
            phase=phase,
            elapsed=self.elapsed(),
            fields=fields,
        )
        try:
            self.sink(event)
        except Exception:
            logger.exception("trace_sink_failed", exchange_id=self.exchange_id, phase=phase)
