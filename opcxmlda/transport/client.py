"""HTTP client construction."""

import httpx

from opcxmlda.config.settings import Settings
from opcxmlda.transport.events import TraceSink
from opcxmlda.transport.observable import ObservableTransport


def build_http_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
    sink: TraceSink | None = None,
) -> httpx.AsyncClient:
    """Build the async HTTP client used for SOAP calls.

    Args:
        settings: Loaded settings; uses the client and net_debug sections
        transport: Underlying transport (defaults to httpx's pooled transport)
        sink: Trace sink used when network debugging is enabled

    Returns:
        Configured client; the caller owns it and must close it
    """
    client_cfg = settings.client
    timeout = httpx.Timeout(
        client_cfg.request_timeout or None,
        connect=client_cfg.http_timeout or None,
    )

    auth = None
    if client_cfg.username:
        password = client_cfg.password.get_secret_value() if client_cfg.password else ""
        auth = httpx.BasicAuth(client_cfg.username, password)

    base: httpx.AsyncBaseTransport = transport or httpx.AsyncHTTPTransport()
    if settings.net_debug.enabled:
        base = ObservableTransport(
            base,
            max_body_bytes=settings.net_debug.max_body_bytes,
            sink=sink,
        )

    return httpx.AsyncClient(transport=base, timeout=timeout, auth=auth)
