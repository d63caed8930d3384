"""Connection phase tracing via the httpcore "trace" request extension.

httpcore reports steps as "<module>.<step>.<started|complete|failed>", e.g.
"connection.connect_tcp.started" or "http11.send_request_headers.complete".
PhaseTracer maps those onto exchange phases. httpcore resolves the host
inside connect_tcp, so the dns phases bracket the same step as connect.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from opcxmlda.observability.logging import get_logger

logger = get_logger(__name__)

TraceExtension = Callable[[str, dict[str, Any]], Awaitable[None]]

_TLS_VERSIONS = {
    "TLSv1.3": "TLS1.3",
    "TLSv1.2": "TLS1.2",
    "TLSv1.1": "TLS1.1",
    "TLSv1": "TLS1.0",
}


def tls_version(version: str | None) -> str:
    """Normalise an ssl protocol name ("TLSv1.3" -> "TLS1.3")."""
    if not version:
        return ""
    return _TLS_VERSIONS.get(version, version)


def _extra(stream: Any, name: str) -> Any:
    if stream is None or not hasattr(stream, "get_extra_info"):
        return None
    return stream.get_extra_info(name)


def _err(info: dict[str, Any]) -> str | None:
    exc = info.get("exception")
    return None if exc is None else repr(exc)


class PhaseTracer:
    """Async httpcore trace callback that emits one event per phase.

    Args:
        emit: Callable taking the phase name and its fields
        downstream: A trace extension already present on the request;
            it still receives every callback
    """

    def __init__(
        self,
        emit: Callable[..., None],
        downstream: TraceExtension | None = None,
    ) -> None:
        self._emit = emit
        self._downstream = downstream
        self._connected = False
        self._got_conn = False
        self._addr = ""

    async def __call__(self, event_name: str, info: dict[str, Any]) -> None:
        try:
            self.dispatch(event_name, info)
        except Exception:
            logger.debug("phase_trace_failed", trace_event=event_name, exc_info=True)
        if self._downstream is not None:
            await self._downstream(event_name, info)

    def dispatch(self, event_name: str, info: dict[str, Any]) -> None:
        module, _, rest = event_name.partition(".")
        step, _, stage = rest.rpartition(".")

        if module == "connection":
            self._connection(step, stage, info)
        elif module in ("http11", "http2"):
            self._http(step, stage, info)

    def _connection(self, step: str, stage: str, info: dict[str, Any]) -> None:
        if step == "connect_tcp":
            if stage == "started":
                host = info.get("host")
                self._addr = f"{host}:{info.get('port')}"
                self._emit("dns start", host=host)
                self._emit("connect start", network="tcp", addr=self._addr)
            elif stage == "complete":
                server_addr = _extra(info.get("return_value"), "server_addr")
                addrs = [str(server_addr[0])] if server_addr else []
                self._connected = True
                self._emit("dns done", addrs=addrs, err=None)
                self._emit("connect done", network="tcp", addr=self._addr, err=None)
            elif stage == "failed":
                self._emit("dns done", addrs=[], err=_err(info))
                self._emit("connect done", network="tcp", addr=self._addr, err=_err(info))
        elif step == "connect_unix_socket":
            if stage == "started":
                self._addr = str(info.get("path"))
                self._emit("connect start", network="unix", addr=self._addr)
            elif stage in ("complete", "failed"):
                self._connected = stage == "complete"
                self._emit("connect done", network="unix", addr=self._addr, err=_err(info))
        elif step == "start_tls":
            if stage == "started":
                self._emit("tls handshake start")
            elif stage == "complete":
                self._tls_done(_extra(info.get("return_value"), "ssl_object"), None)
            elif stage == "failed":
                self._tls_done(None, _err(info))

    def _tls_done(self, ssl_object: Any, err: str | None) -> None:
        version = ""
        cipher_suite = ""
        negotiated_protocol = ""
        server_name = ""
        if ssl_object is not None:
            version = tls_version(ssl_object.version())
            cipher = ssl_object.cipher()
            cipher_suite = cipher[0] if cipher else ""
            negotiated_protocol = ssl_object.selected_alpn_protocol() or ""
            server_name = getattr(ssl_object, "server_hostname", None) or ""
        self._emit(
            "tls handshake done",
            version=version,
            server_name=server_name,
            negotiated_protocol=negotiated_protocol,
            cipher_suite=cipher_suite,
            err=err,
        )

    def _http(self, step: str, stage: str, info: dict[str, Any]) -> None:
        if step == "send_request_headers":
            if stage == "started" and not self._got_conn:
                self._got_conn = True
                self._emit("got conn", reused=not self._connected)
            elif stage == "complete":
                self._emit("wrote headers")
        elif step == "send_request_body":
            if stage in ("complete", "failed"):
                self._emit("wrote request", err=_err(info))
        elif step == "receive_response_headers" and stage == "complete":
            self._emit("first response byte")
