"""Tests for OpcXmlDaClient against a mocked HTTP transport."""

import xml.etree.ElementTree as ET
from collections.abc import Callable

import httpx
import pytest

from opcxmlda.errors import ProtocolError, SoapFaultError, TransportFailure
from opcxmlda.service import soap
from opcxmlda.service.client import OpcXmlDaClient, fetch_node_value
from opcxmlda.service.models import BrowseRequest

ENDPOINT = "http://plc.local/da"

Handler = Callable[[httpx.Request], httpx.Response]


def envelope(body: str) -> bytes:
    return (
        f'<soap:Envelope xmlns:soap="{soap.NS_SOAP}" xmlns="{soap.NS_DA}">'
        f"<soap:Body>{body}</soap:Body></soap:Envelope>"
    ).encode()


def xml_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=envelope(body),
        headers={"Content-Type": "text/xml; charset=utf-8"},
    )


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    def operation(self, index: int = 0) -> ET.Element:
        return soap.parse_envelope(self.requests[index].content)


def _client(handler: Handler) -> OpcXmlDaClient:
    return OpcXmlDaClient(ENDPOINT, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestCalls:
    """Tests for the wire format of each call."""

    @pytest.mark.asyncio
    async def test_browse_posts_soap(self) -> None:
        recorder = Recorder(xml_response(
            '<BrowseResponse MoreElements="false"><Elements Name="A" ItemName="A"/></BrowseResponse>'
        ))
        client = _client(recorder)

        response = await client.browse(BrowseRequest(item_name="Channel1"))

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == ENDPOINT
        assert request.headers["content-type"] == "text/xml; charset=utf-8"
        assert request.headers["soapaction"] == f'"{soap.NS_DA}Browse"'
        assert recorder.operation().get("ItemName") == "Channel1"
        assert [e.name for e in response.elements] == ["A"]

    @pytest.mark.asyncio
    async def test_get_status(self) -> None:
        recorder = Recorder(xml_response(
            "<GetStatusResponse><Status><VendorInfo>Acme</VendorInfo></Status></GetStatusResponse>"
        ))
        client = _client(recorder)

        response = await client.get_status("en-US", "h7")

        assert recorder.operation().attrib == {"LocaleID": "en-US", "ClientRequestHandle": "h7"}
        assert response.status is not None
        assert response.status.vendor_info == "Acme"

    @pytest.mark.asyncio
    async def test_fetch_node_value(self) -> None:
        recorder = Recorder(xml_response(
            '<ReadResponse><RItemList><Items ItemName="T1"><Value>7</Value></Items></RItemList></ReadResponse>'
        ))
        client = _client(recorder)

        response = await fetch_node_value(client, "en", "h1", "Dev", "T1")

        read = recorder.operation()
        options = read.find(f"{{{soap.NS_DA}}}Options")
        assert options is not None
        assert options.attrib == {
            "ReturnErrorText": "true",
            "ReturnDiagnosticInfo": "true",
            "ReturnItemTime": "true",
            "ReturnItemPath": "true",
            "ReturnItemName": "true",
            "ClientRequestHandle": "h1",
            "LocaleID": "en",
        }
        item = read.find(f"{{{soap.NS_DA}}}ItemList/{{{soap.NS_DA}}}Items")
        assert item is not None
        assert item.attrib == {"ItemPath": "Dev", "ItemName": "T1"}
        assert response.items[0].value == "7"

    @pytest.mark.asyncio
    async def test_fetch_node_value_requires_target(self) -> None:
        client = _client(Recorder(xml_response("<ReadResponse/>")))
        with pytest.raises(ValueError, match="item path or item name"):
            await fetch_node_value(client, "", "", "", "")


class TestFailures:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_network_error_is_transport_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportFailure) as exc_info:
            await _client(refuse).get_status()

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_fault_with_http_500(self) -> None:
        fault = (
            "<soap:Fault><faultcode>soap:Client</faultcode>"
            "<faultstring>Bad request</faultstring></soap:Fault>"
        )
        client = _client(Recorder(xml_response(fault, status_code=500)))

        with pytest.raises(SoapFaultError) as exc_info:
            await client.browse(BrowseRequest())

        assert exc_info.value.code == "soap:Client"
        assert "Bad request" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_http_error_without_envelope(self) -> None:
        client = _client(Recorder(httpx.Response(503, text="<html>down</html>")))

        with pytest.raises(TransportFailure) as exc_info:
            await client.get_status()

        assert exc_info.value.status_code == 503
        assert "HTTP 503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_http_error_with_plain_envelope(self) -> None:
        client = _client(Recorder(xml_response("<GetStatusResponse/>", status_code=500)))

        with pytest.raises(TransportFailure) as exc_info:
            await client.get_status()

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_malformed_reply(self) -> None:
        client = _client(Recorder(httpx.Response(200, text="not xml")))

        with pytest.raises(ProtocolError):
            await client.get_status()
