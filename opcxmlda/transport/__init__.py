"""HTTP transport with exchange tracing."""

from opcxmlda.transport.capture import REDACTED, CapturedBody, redact_headers
from opcxmlda.transport.client import build_http_client
from opcxmlda.transport.events import LoggingTraceSink, TraceEvent, TraceSink
from opcxmlda.transport.observable import CapturedResponseStream, ObservableTransport

__all__ = [
    "REDACTED",
    "CapturedBody",
    "CapturedResponseStream",
    "LoggingTraceSink",
    "ObservableTransport",
    "TraceEvent",
    "TraceSink",
    "build_http_client",
    "redact_headers",
]
