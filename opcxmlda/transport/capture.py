"""Bounded body capture and header redaction for exchange tracing."""

from collections.abc import Mapping

import httpx

REDACTED = "<redacted>"

SENSITIVE_HEADERS: frozenset[str] = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
})


def redact_headers(headers: httpx.Headers | Mapping[str, str]) -> dict[str, list[str]]:
    """Copy headers into a plain map, masking credential-bearing ones.

    Repeated headers keep every value in order; a sensitive header collapses
    to a single "<redacted>" entry however many values it had.
    """
    if not isinstance(headers, httpx.Headers):
        headers = httpx.Headers(headers)

    redacted: dict[str, list[str]] = {}
    for raw_key, raw_value in headers.raw:
        key = raw_key.decode(headers.encoding)
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = [REDACTED]
            continue
        redacted.setdefault(key, []).append(raw_value.decode(headers.encoding))
    return redacted


def content_length(headers: httpx.Headers) -> int | None:
    """Declared Content-Length, or None when absent or malformed."""
    value = headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class CapturedBody:
    """Keeps at most `limit` bytes of a body while counting all of it.

    Once more bytes arrive than fit, `truncated` stays true; bytes past the
    limit are counted but never stored.
    """

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.total_bytes = 0
        self.truncated = False
        self._buf = bytearray()

    def write(self, chunk: bytes) -> None:
        if not chunk:
            return
        self.total_bytes += len(chunk)
        remaining = self.limit - len(self._buf)
        if remaining <= 0:
            self.truncated = True
            return
        if len(chunk) > remaining:
            self._buf += chunk[:remaining]
            self.truncated = True
        else:
            self._buf += chunk

    @property
    def captured(self) -> bytes:
        return bytes(self._buf)

    @property
    def preview(self) -> str:
        return self._buf.decode("utf-8", errors="replace")
