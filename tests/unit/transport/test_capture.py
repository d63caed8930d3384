"""Tests for bounded body capture and header redaction."""

import httpx
import pytest

from opcxmlda.transport.capture import (
    REDACTED,
    CapturedBody,
    content_length,
    redact_headers,
)


class TestCapturedBody:
    """Tests for CapturedBody."""

    def test_large_body_truncated_at_budget(self) -> None:
        """200,000 bytes against a 65,536 budget keeps exactly the budget."""
        body = CapturedBody(65536)
        for _ in range(4):
            body.write(b"x" * 50000)

        assert len(body.captured) == 65536
        assert body.truncated is True
        assert body.total_bytes == 200000

    def test_small_body_kept_whole(self) -> None:
        body = CapturedBody(65536)
        body.write(b"y" * 100)

        assert body.captured == b"y" * 100
        assert body.truncated is False
        assert body.total_bytes == 100

    def test_body_exactly_at_budget_not_truncated(self) -> None:
        body = CapturedBody(10)
        body.write(b"0123456789")

        assert body.captured == b"0123456789"
        assert body.truncated is False

    def test_one_byte_over_budget_truncated(self) -> None:
        body = CapturedBody(10)
        body.write(b"01234")
        body.write(b"56789")
        body.write(b"!")

        assert body.captured == b"0123456789"
        assert body.truncated is True
        assert body.total_bytes == 11

    def test_zero_budget(self) -> None:
        """A zero budget captures nothing and flags any byte as truncated."""
        empty = CapturedBody(0)
        assert empty.truncated is False
        assert empty.preview == ""

        body = CapturedBody(0)
        body.write(b"a")
        assert body.captured == b""
        assert body.truncated is True

    def test_empty_chunks_ignored(self) -> None:
        body = CapturedBody(4)
        body.write(b"")
        assert body.total_bytes == 0
        assert body.truncated is False

    def test_preview_replaces_invalid_utf8(self) -> None:
        body = CapturedBody(16)
        body.write("ok ".encode() + b"\xff")
        assert body.preview == "ok \ufffd"

    def test_preview_cut_mid_character(self) -> None:
        """Cutting a multi-byte character at the budget does not raise."""
        body = CapturedBody(1)
        body.write("é".encode())
        assert body.truncated is True
        assert body.preview == "\ufffd"


class TestRedactHeaders:
    """Tests for redact_headers."""

    @pytest.mark.parametrize(
        "name",
        ["Authorization", "authorization", "AUTHORIZATION", "aUtHoRiZaTiOn"],
    )
    def test_authorization_redacted_any_case(self, name: str) -> None:
        headers = httpx.Headers([(name, "secret")])

        redacted = redact_headers(headers)

        assert redacted == {name: [REDACTED]}
        assert "secret" not in repr(redacted)

    @pytest.mark.parametrize("name", ["Proxy-Authorization", "Cookie", "Set-Cookie"])
    def test_other_credentials_redacted(self, name: str) -> None:
        redacted = redact_headers(httpx.Headers([(name, "a"), (name, "b")]))
        assert redacted == {name: [REDACTED]}

    def test_repeated_headers_keep_all_values(self) -> None:
        headers = httpx.Headers([("Accept", "text/xml"), ("Accept", "application/soap+xml")])
        assert redact_headers(headers) == {"Accept": ["text/xml", "application/soap+xml"]}

    def test_accepts_plain_mapping(self) -> None:
        redacted = redact_headers({"SOAPAction": '"Browse"', "Cookie": "sid=1"})
        assert redacted == {"SOAPAction": ['"Browse"'], "Cookie": [REDACTED]}


class TestContentLength:
    """Tests for content_length."""

    def test_present(self) -> None:
        assert content_length(httpx.Headers({"Content-Length": "42"})) == 42

    def test_absent(self) -> None:
        assert content_length(httpx.Headers()) is None

    def test_malformed(self) -> None:
        assert content_length(httpx.Headers({"Content-Length": "lots"})) is None
