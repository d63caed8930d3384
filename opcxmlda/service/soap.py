"""SOAP 1.1 envelope encoding and OPC XML-DA reply decoding.

Requests are built as ElementTree elements in the XML-DA namespace and
wrapped in an envelope; replies are unwrapped, checked for faults and
decoded into the pydantic models in `opcxmlda.service.models`. Empty
string attributes are omitted, as are false booleans and zero counts.
"""

import xml.etree.ElementTree as ET
from typing import Any

from opcxmlda.errors import ProtocolError, SoapFaultError
from opcxmlda.service.models import (
    BrowseElement,
    BrowseRequest,
    BrowseResponse,
    GetStatusResponse,
    ItemValue,
    OPCError,
    OPCQuality,
    ReadRequest,
    ReadResponse,
    ReplyBase,
    ServerStatus,
)
from opcxmlda.xsd_datetime import XsdDateTime, parse_xsd_datetime

NS_SOAP = "http://schemas.xmlsoap.org/soap/envelope/"
NS_DA = "http://opcfoundation.org/WebServices/XMLDA/1.0/"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

ET.register_namespace("soap", NS_SOAP)
ET.register_namespace("xsi", NS_XSI)
# Operation elements are written in the default namespace.
ET.register_namespace("", NS_DA)


def _soap(tag: str) -> str:
    return f"{{{NS_SOAP}}}{tag}"


def _da(tag: str) -> str:
    return f"{{{NS_DA}}}{tag}"


def soap_action(operation: str) -> str:
    """SOAPAction header value for an operation."""
    return f'"{NS_DA}{operation}"'


def _attrs(**values: Any) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for key, value in values.items():
        if value is None or value == "" or value is False or value == 0:
            continue
        if value is True:
            attrs[key] = "true"
        elif hasattr(value, "value"):
            attrs[key] = str(value.value)
        else:
            attrs[key] = str(value)
    return attrs


def build_envelope(payload: ET.Element) -> bytes:
    """Wrap an operation element in a SOAP envelope."""
    envelope = ET.Element(_soap("Envelope"))
    body = ET.SubElement(envelope, _soap("Body"))
    body.append(payload)
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def _local_text(element: ET.Element, name: str) -> str:
    # Fault children are unqualified but may inherit a default namespace.
    for child in element:
        if child.tag == name or child.tag.endswith("}" + name):
            return (child.text or "").strip()
    return ""


def parse_envelope(content: bytes) -> ET.Element:
    """Return the operation element of a SOAP reply.

    Raises:
        SoapFaultError: If the body carries a SOAP fault
        ProtocolError: If the content is not a SOAP envelope with a body
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ProtocolError(f"malformed SOAP reply: {e}") from e

    body = root.find(_soap("Body"))
    if root.tag != _soap("Envelope") or body is None:
        raise ProtocolError(f"not a SOAP envelope: {root.tag}")

    fault = body.find(_soap("Fault"))
    if fault is not None:
        code = _local_text(fault, "faultcode")
        message = _local_text(fault, "faultstring") or "unspecified fault"
        raise SoapFaultError(f"soap fault {code}: {message}" if code else f"soap fault: {message}", code=code)

    payload = next(iter(body), None)
    if payload is None:
        raise ProtocolError("SOAP body is empty")
    return payload


# =============================================================================
# Requests
# =============================================================================


def encode_browse(request: BrowseRequest) -> ET.Element:
    return ET.Element(
        _da("Browse"),
        _attrs(
            LocaleID=request.locale_id,
            ClientRequestHandle=request.client_request_handle,
            ItemPath=request.item_path,
            ItemName=request.item_name,
            ContinuationPoint=request.continuation_point,
            MaxElementsReturned=request.max_elements_returned,
            BrowseFilter=request.browse_filter,
            ElementNameFilter=request.element_name_filter,
            VendorFilter=request.vendor_filter,
            ReturnAllProperties=request.return_all_properties,
            ReturnPropertyValues=request.return_property_values,
            ReturnErrorText=request.return_error_text,
        ),
    )


def encode_get_status(locale_id: str = "", client_request_handle: str = "") -> ET.Element:
    return ET.Element(
        _da("GetStatus"),
        _attrs(LocaleID=locale_id, ClientRequestHandle=client_request_handle),
    )


def encode_read(request: ReadRequest) -> ET.Element:
    read = ET.Element(_da("Read"))
    options = request.options
    ET.SubElement(
        read,
        _da("Options"),
        _attrs(
            ReturnErrorText=options.return_error_text,
            ReturnDiagnosticInfo=options.return_diagnostic_info,
            ReturnItemTime=options.return_item_time,
            ReturnItemPath=options.return_item_path,
            ReturnItemName=options.return_item_name,
            ClientRequestHandle=options.client_request_handle,
            LocaleID=options.locale_id,
        ),
    )
    item_list = ET.SubElement(read, _da("ItemList"))
    for item in request.items:
        ET.SubElement(
            item_list,
            _da("Items"),
            _attrs(
                ItemPath=item.item_path,
                ItemName=item.item_name,
                ClientItemHandle=item.client_item_handle,
            ),
        )
    return read


# =============================================================================
# Replies
# =============================================================================


def _expect(payload: ET.Element, operation: str) -> None:
    if payload.tag != _da(operation):
        raise ProtocolError(f"expected {operation}, got {payload.tag}")


def _bool(value: str | None) -> bool:
    return (value or "").strip().lower() in ("true", "1")


def _int(value: str | None, name: str) -> int:
    raw = (value or "").strip()
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError as e:
        raise ProtocolError(f"invalid {name} {value!r}") from e


def _time(value: str | None) -> XsdDateTime:
    return parse_xsd_datetime(value or "")


def _reply_base(element: ET.Element | None) -> ReplyBase | None:
    if element is None:
        return None
    return ReplyBase(
        rcv_time=_time(element.get("RcvTime")),
        reply_time=_time(element.get("ReplyTime")),
        client_request_handle=element.get("ClientRequestHandle", ""),
        revised_locale_id=element.get("RevisedLocaleID", ""),
        server_state=element.get("ServerState"),
    )


def _errors(payload: ET.Element) -> list[OPCError]:
    return [
        OPCError(id=error.get("ID") or None, text=error.findtext(_da("Text")) or "")
        for error in payload.findall(_da("Errors"))
    ]


def decode_browse_response(payload: ET.Element) -> BrowseResponse:
    _expect(payload, "BrowseResponse")
    return BrowseResponse(
        browse_result=_reply_base(payload.find(_da("BrowseResult"))),
        elements=[
            BrowseElement(
                name=element.get("Name", ""),
                item_path=element.get("ItemPath", ""),
                item_name=element.get("ItemName", ""),
                is_item=_bool(element.get("IsItem")),
                has_children=_bool(element.get("HasChildren")),
            )
            for element in payload.findall(_da("Elements"))
        ],
        continuation_point=payload.get("ContinuationPoint", ""),
        more_elements=_bool(payload.get("MoreElements")),
        errors=_errors(payload),
    )


def decode_get_status_response(payload: ET.Element) -> GetStatusResponse:
    _expect(payload, "GetStatusResponse")
    status = payload.find(_da("Status"))
    server_status = None
    if status is not None:
        server_status = ServerStatus(
            status_info=status.findtext(_da("StatusInfo")) or "",
            vendor_info=status.findtext(_da("VendorInfo")) or "",
            product_version=status.get("ProductVersion", ""),
            start_time=_time(status.get("StartTime")),
            supported_locale_ids=[
                e.text or "" for e in status.findall(_da("SupportedLocaleIDs"))
            ],
            supported_interface_versions=[
                e.text or "" for e in status.findall(_da("SupportedInterfaceVersions"))
            ],
        )
    return GetStatusResponse(
        get_status_result=_reply_base(payload.find(_da("GetStatusResult"))),
        status=server_status,
    )


def _item_value(element: ET.Element) -> ItemValue:
    value = element.find(_da("Value"))
    quality = element.find(_da("Quality"))
    return ItemValue(
        item_path=element.get("ItemPath", ""),
        item_name=element.get("ItemName", ""),
        client_item_handle=element.get("ClientItemHandle", ""),
        timestamp=_time(element.get("Timestamp")),
        result_id=element.get("ResultID"),
        value_type_qualifier=element.get("ValueTypeQualifier"),
        diagnostic_info=element.findtext(_da("DiagnosticInfo")) or "",
        value=None if value is None else (value.text or ""),
        value_type=None if value is None else value.get(f"{{{NS_XSI}}}type"),
        quality=None
        if quality is None
        else OPCQuality(
            quality_field=quality.get("QualityField"),
            limit_field=quality.get("LimitField"),
            vendor_field=_int(quality.get("VendorField"), "VendorField"),
        ),
    )


def decode_read_response(payload: ET.Element) -> ReadResponse:
    _expect(payload, "ReadResponse")
    item_list = payload.find(_da("RItemList"))
    items = [] if item_list is None else [_item_value(e) for e in item_list.findall(_da("Items"))]
    return ReadResponse(
        read_result=_reply_base(payload.find(_da("ReadResult"))),
        items=items,
        errors=_errors(payload),
    )
