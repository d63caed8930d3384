"""Observable HTTP transport.

ObservableTransport wraps any httpx async transport and traces every
exchange passing through it: redacted headers, bounded body previews,
connection phase timing and the final outcome. Tracing is best-effort;
the wrapped transport's response or exception reaches the caller unchanged.
"""

import asyncio
import threading
import time
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime

import httpx

from opcxmlda.config.models.net_debug import DEFAULT_MAX_BODY_BYTES
from opcxmlda.errors import XsdDateTimeError
from opcxmlda.observability.logging import get_logger
from opcxmlda.observability.metrics import (
    CAPTURE_TRUNCATIONS,
    HTTP_EXCHANGE_LATENCY,
    HTTP_EXCHANGES,
)
from opcxmlda.transport.capture import CapturedBody, content_length, redact_headers
from opcxmlda.transport.events import ExchangeEmitter, LoggingTraceSink, TraceSink
from opcxmlda.transport.phases import PhaseTracer
from opcxmlda.xsd_datetime import XsdDateTime, format_xsd_datetime

logger = get_logger(__name__)

_NO_BODY_STATUS = frozenset({204, 304})


class CapturedResponseStream(httpx.AsyncByteStream):
    """Response body stream that records a bounded preview as it is read.

    Chunks pass through to the consumer untouched. Closing the stream
    closes the wrapped one and then reports the capture; closing twice is
    a no-op.
    """

    def __init__(
        self,
        stream: httpx.AsyncByteStream,
        capture: CapturedBody,
        on_close: Callable[[CapturedBody], None],
    ) -> None:
        self._stream = stream
        self._capture = capture
        self._on_close = on_close
        self._closed = False

    @property
    def capture(self) -> CapturedBody:
        return self._capture

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            self._capture.write(chunk)
            yield chunk

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stream.aclose()
        finally:
            self._on_close(self._capture)


class ObservableTransport(httpx.AsyncBaseTransport):
    """Transport decorator that traces each exchange.

    Use one instance per connection pool; exchange ids are sequential per
    instance and safe to allocate from concurrent tasks and threads.

    Args:
        transport: The transport that actually performs the exchange
        max_body_bytes: Capture budget per request body and per response body
        sink: Receives trace events; defaults to structured logging
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
        sink: TraceSink | None = None,
    ) -> None:
        self._transport = transport
        self._max_body_bytes = max_body_bytes
        self._sink: TraceSink = sink if sink is not None else LoggingTraceSink()
        self._seq = 0
        self._seq_lock = threading.Lock()

    def _next_id(self) -> int:
        with self._seq_lock:
            self._seq += 1
            return self._seq

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        exchange_id = self._next_id()
        emit = ExchangeEmitter(self._sink, exchange_id, time.perf_counter())
        method = request.method

        request_body = CapturedBody(self._max_body_bytes)
        if _has_request_body(request.headers):
            request_body.write(await request.aread())
        if request_body.truncated:
            CAPTURE_TRUNCATIONS.labels(direction="request").inc()

        request_fields = {
            "method": method,
            "url": str(request.url),
            "headers": redact_headers(request.headers),
            "content_length": content_length(request.headers),
            "body_size": request_body.total_bytes,
            "body_truncated": request_body.truncated,
            "body_preview": request_body.preview,
        }
        started_at = _wall_clock()
        if started_at is not None:
            request_fields["started_at"] = started_at
        emit("request", **request_fields)

        request.extensions = {
            **request.extensions,
            "trace": PhaseTracer(emit, request.extensions.get("trace")),
        }

        try:
            response = await self._transport.handle_async_request(request)
        except (Exception, asyncio.CancelledError) as e:
            emit("response error", err=repr(e))
            outcome = "cancelled" if isinstance(e, asyncio.CancelledError) else "error"
            HTTP_EXCHANGES.labels(method=method, outcome=outcome).inc()
            raise

        elapsed = emit.elapsed()
        HTTP_EXCHANGES.labels(method=method, outcome="response").inc()
        HTTP_EXCHANGE_LATENCY.labels(method=method).observe(elapsed)
        emit(
            "response",
            status=response.status_code,
            reason=response.reason_phrase,
            headers=redact_headers(response.headers),
            content_length=content_length(response.headers),
        )

        if _has_response_body(method, response):
            self._capture_response_body(response, emit)
        return response

    def _capture_response_body(self, response: httpx.Response, emit: ExchangeEmitter) -> None:
        capture = CapturedBody(self._max_body_bytes)

        def report(body: CapturedBody) -> None:
            if body.truncated:
                CAPTURE_TRUNCATIONS.labels(direction="response").inc()
            emit(
                "response body",
                bytes_read=body.total_bytes,
                body_truncated=body.truncated,
                body_preview=body.preview,
            )

        if response.is_stream_consumed:
            # Transport already loaded the body into memory.
            capture.write(response.content)
            report(capture)
            return

        stream = response.stream
        if not isinstance(stream, httpx.AsyncByteStream):
            logger.debug("response_stream_not_async", stream_type=type(stream).__name__)
            return
        response.stream = CapturedResponseStream(stream, capture, report)


def _has_request_body(headers: httpx.Headers) -> bool:
    if "transfer-encoding" in headers:
        return True
    length = content_length(headers)
    return length is not None and length != 0


def _has_response_body(method: str, response: httpx.Response) -> bool:
    if method == "HEAD":
        return False
    if response.status_code < 200 or response.status_code in _NO_BODY_STATUS:
        return False
    return content_length(response.headers) != 0


def _wall_clock() -> str | None:
    try:
        return format_xsd_datetime(XsdDateTime(datetime.now(UTC)))
    except XsdDateTimeError as e:
        logger.debug("trace_timestamp_dropped", error=str(e))
        return None
