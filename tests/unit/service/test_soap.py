"""Tests for SOAP envelope encoding and reply decoding."""

import xml.etree.ElementTree as ET

import pytest

from opcxmlda.errors import ProtocolError, SoapFaultError, XsdDateTimeError
from opcxmlda.service import soap
from opcxmlda.service.models import (
    BrowseFilter,
    BrowseRequest,
    ReadRequest,
    ReadRequestItem,
    RequestOptions,
)

SOAP = soap.NS_SOAP
DA = soap.NS_DA


def envelope(body: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<soap:Envelope xmlns:soap="{SOAP}" xmlns="{DA}" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
        f"<soap:Body>{body}</soap:Body></soap:Envelope>"
    ).encode()


def _operation(content: bytes) -> ET.Element:
    root = ET.fromstring(content)
    body = root.find(f"{{{SOAP}}}Body")
    assert body is not None
    return body[0]


class TestEncode:
    """Tests for request encoding."""

    def test_browse_envelope(self) -> None:
        """A Browse request carries only the attributes that are set."""
        request = BrowseRequest(
            locale_id="en-US",
            item_path="",
            item_name="Channel1",
            continuation_point="t1",
            browse_filter=BrowseFilter.ALL,
            return_error_text=True,
        )

        content = soap.build_envelope(soap.encode_browse(request))

        assert content.startswith(b"<?xml")
        browse = _operation(content)
        assert browse.tag == f"{{{DA}}}Browse"
        assert browse.attrib == {
            "LocaleID": "en-US",
            "ItemName": "Channel1",
            "ContinuationPoint": "t1",
            "BrowseFilter": "all",
            "ReturnErrorText": "true",
        }

    def test_browse_writes_default_namespace(self) -> None:
        content = soap.build_envelope(soap.encode_browse(BrowseRequest(item_name="A")))
        assert f'xmlns="{DA}"'.encode() in content
        assert b"<Browse " in content

    def test_browse_max_elements(self) -> None:
        request = BrowseRequest(max_elements_returned=50, browse_filter=BrowseFilter.BRANCH)
        browse = _operation(soap.build_envelope(soap.encode_browse(request)))
        assert browse.get("MaxElementsReturned") == "50"
        assert browse.get("BrowseFilter") == "branch"

    def test_get_status(self) -> None:
        content = soap.build_envelope(soap.encode_get_status("de-DE", "h1"))
        status = _operation(content)
        assert status.tag == f"{{{DA}}}GetStatus"
        assert status.attrib == {"LocaleID": "de-DE", "ClientRequestHandle": "h1"}

    def test_read(self) -> None:
        request = ReadRequest(
            options=RequestOptions(return_item_time=True, locale_id="en"),
            items=[ReadRequestItem(item_path="Dev1", item_name="Tag1")],
        )

        read = _operation(soap.build_envelope(soap.encode_read(request)))

        options = read.find(f"{{{DA}}}Options")
        assert options is not None
        assert options.attrib == {"ReturnErrorText": "true", "ReturnItemTime": "true", "LocaleID": "en"}
        items = read.findall(f"{{{DA}}}ItemList/{{{DA}}}Items")
        assert [i.attrib for i in items] == [{"ItemPath": "Dev1", "ItemName": "Tag1"}]

    def test_soap_action(self) -> None:
        assert soap.soap_action("Browse") == f'"{DA}Browse"'


class TestParseEnvelope:
    """Tests for parse_envelope."""

    def test_returns_operation_element(self) -> None:
        payload = soap.parse_envelope(envelope("<GetStatusResponse/>"))
        assert payload.tag == f"{{{DA}}}GetStatusResponse"

    def test_fault(self) -> None:
        content = envelope(
            "<soap:Fault><faultcode>soap:Server</faultcode>"
            "<faultstring>Item unknown</faultstring></soap:Fault>"
        )
        with pytest.raises(SoapFaultError) as exc_info:
            soap.parse_envelope(content)
        assert exc_info.value.code == "soap:Server"
        assert "Item unknown" in exc_info.value.message

    def test_malformed_xml(self) -> None:
        with pytest.raises(ProtocolError, match="malformed"):
            soap.parse_envelope(b"<soap:Envelope")

    def test_not_an_envelope(self) -> None:
        with pytest.raises(ProtocolError, match="not a SOAP envelope"):
            soap.parse_envelope(b"<html><body>502</body></html>")

    def test_empty_body(self) -> None:
        with pytest.raises(ProtocolError, match="empty"):
            soap.parse_envelope(envelope(""))


class TestDecodeBrowse:
    """Tests for decode_browse_response."""

    def test_elements_and_continuation(self) -> None:
        payload = soap.parse_envelope(envelope(
            '<BrowseResponse ContinuationPoint="t1" MoreElements="true">'
            '<BrowseResult RcvTime="2020-01-01T00:00:00Z" ReplyTime="2020-01-01T00:00:01Z"'
            ' RevisedLocaleID="en" ServerState="running"/>'
            '<Elements Name="Tag1" ItemName="Channel1.Tag1" IsItem="true" HasChildren="false"/>'
            '<Elements Name="Sub" ItemPath="P" ItemName="Channel1.Sub" HasChildren="true"/>'
            "</BrowseResponse>"
        ))

        response = soap.decode_browse_response(payload)

        assert response.continuation_point == "t1"
        assert response.more_elements is True
        assert [e.name for e in response.elements] == ["Tag1", "Sub"]
        assert response.elements[0].is_item is True
        assert response.elements[0].has_children is False
        assert response.elements[1].item_path == "P"
        assert response.elements[1].has_children is True
        assert response.errors == []
        assert response.browse_result is not None
        assert response.browse_result.server_state == "running"
        assert response.browse_result.revised_locale_id == "en"
        assert not response.browse_result.reply_time.is_zero

    def test_errors(self) -> None:
        payload = soap.parse_envelope(envelope(
            "<BrowseResponse>"
            '<Errors ID="E_UNKNOWNITEMNAME"><Text>no such item</Text></Errors>'
            "<Errors><Text>second</Text></Errors>"
            "</BrowseResponse>"
        ))

        response = soap.decode_browse_response(payload)

        assert [(e.id, e.text) for e in response.errors] == [
            ("E_UNKNOWNITEMNAME", "no such item"),
            (None, "second"),
        ]
        assert response.more_elements is False

    def test_wrong_operation(self) -> None:
        payload = soap.parse_envelope(envelope("<ReadResponse/>"))
        with pytest.raises(ProtocolError, match="expected BrowseResponse"):
            soap.decode_browse_response(payload)

    def test_bad_timestamp_propagates(self) -> None:
        payload = soap.parse_envelope(envelope(
            '<BrowseResponse><BrowseResult ReplyTime="yesterday"/></BrowseResponse>'
        ))
        with pytest.raises(XsdDateTimeError):
            soap.decode_browse_response(payload)


class TestDecodeStatus:
    """Tests for decode_get_status_response."""

    def test_status(self) -> None:
        payload = soap.parse_envelope(envelope(
            "<GetStatusResponse>"
            '<GetStatusResult ReplyTime="2024-05-01T10:00:00Z" ServerState="running"/>'
            '<Status StartTime="2024-05-01T08:00:00Z" ProductVersion="2.1">'
            "<StatusInfo>OK</StatusInfo><VendorInfo>Acme OPC</VendorInfo>"
            "<SupportedLocaleIDs>en-US</SupportedLocaleIDs>"
            "<SupportedLocaleIDs>de-DE</SupportedLocaleIDs>"
            "<SupportedInterfaceVersions>XML_DA_Version_1_0</SupportedInterfaceVersions>"
            "</Status></GetStatusResponse>"
        ))

        response = soap.decode_get_status_response(payload)

        assert response.status is not None
        assert response.status.vendor_info == "Acme OPC"
        assert response.status.product_version == "2.1"
        assert response.status.supported_locale_ids == ["en-US", "de-DE"]
        assert response.status.supported_interface_versions == ["XML_DA_Version_1_0"]
        assert response.get_status_result is not None
        assert response.get_status_result.server_state == "running"

    def test_empty(self) -> None:
        response = soap.decode_get_status_response(soap.parse_envelope(envelope("<GetStatusResponse/>")))
        assert response.status is None
        assert response.get_status_result is None


class TestDecodeRead:
    """Tests for decode_read_response."""

    def test_items(self) -> None:
        payload = soap.parse_envelope(envelope(
            "<ReadResponse>"
            '<ReadResult ServerState="running"/>'
            "<RItemList>"
            '<Items ItemName="Channel1.Tag1" Timestamp="2024-05-01T10:00:00.25Z">'
            '<Value xsi:type="xsd:double">21.5</Value>'
            '<Quality QualityField="good" LimitField="none" VendorField="3"/>'
            "</Items>"
            '<Items ItemName="Channel1.Missing" ResultID="E_UNKNOWNITEMNAME"/>'
            "</RItemList>"
            "</ReadResponse>"
        ))

        response = soap.decode_read_response(payload)

        first, second = response.items
        assert first.value == "21.5"
        assert first.value_type == "xsd:double"
        assert first.quality is not None
        assert first.quality.quality_field == "good"
        assert first.quality.vendor_field == 3
        assert first.timestamp.instant is not None
        assert first.timestamp.instant.microsecond == 250000
        assert second.result_id == "E_UNKNOWNITEMNAME"
        assert second.value is None
        assert second.quality is None
        assert second.timestamp.is_zero

    def test_non_numeric_vendor_field_is_protocol_error(self) -> None:
        payload = soap.parse_envelope(envelope(
            '<ReadResponse><RItemList><Items ItemName="T1">'
            '<Quality QualityField="good" VendorField="x"/>'
            "</Items></RItemList></ReadResponse>"
        ))

        with pytest.raises(ProtocolError, match="VendorField") as exc_info:
            soap.decode_read_response(payload)

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_missing_vendor_field_defaults_to_zero(self) -> None:
        payload = soap.parse_envelope(envelope(
            '<ReadResponse><RItemList><Items ItemName="T1">'
            '<Quality QualityField="bad"/>'
            "</Items></RItemList></ReadResponse>"
        ))

        quality = soap.decode_read_response(payload).items[0].quality

        assert quality is not None
        assert quality.vendor_field == 0
