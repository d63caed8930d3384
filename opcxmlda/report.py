"""Plain-text rendering of status, read results and browse tree lines."""

from typing import TextIO

from opcxmlda.browse import TreeLine, format_opc_errors
from opcxmlda.service.models import (
    GetStatusResponse,
    ItemValue,
    OPCQuality,
    ReadResponse,
    ReplyBase,
)
from opcxmlda.xsd_datetime import XsdDateTime, format_xsd_datetime


def format_tree_line(line: TreeLine) -> str:
    """Indent two spaces per level; branches get a trailing slash."""
    suffix = "/" if line.has_children else ""
    return "  " * line.depth + line.label + suffix


def format_quality(quality: OPCQuality | None) -> str:
    if quality is None:
        return ""
    parts: list[str] = []
    if quality.quality_field is not None:
        parts.append(f"quality={quality.quality_field}")
    if quality.limit_field is not None:
        parts.append(f"limit={quality.limit_field}")
    if quality.vendor_field != 0:
        parts.append(f"vendor={quality.vendor_field}")
    return ", ".join(parts)


def _time(value: XsdDateTime) -> str:
    return format_xsd_datetime(value) or ""


def _field(out: TextIO, indent: str, name: str, value: str | None) -> None:
    if value:
        out.write(f"{indent}{name}: {value}\n")


def _reply_base(out: TextIO, label: str, base: ReplyBase) -> None:
    out.write(f"{label}:\n")
    _field(out, "  ", "ServerState", base.server_state)
    _field(out, "  ", "RevisedLocaleID", base.revised_locale_id)
    _field(out, "  ", "ClientRequestHandle", base.client_request_handle)
    _field(out, "  ", "ReplyTime", _time(base.reply_time))
    _field(out, "  ", "ReceiveTime", _time(base.rcv_time))


def print_status(out: TextIO, resp: GetStatusResponse | None) -> None:
    """Write a GetStatus reply; empty fields are skipped."""
    if resp is None:
        out.write("no response\n")
        return

    if resp.get_status_result is not None:
        _reply_base(out, "GetStatusResult", resp.get_status_result)

    status = resp.status
    if status is not None:
        out.write("Status:\n")
        _field(out, "  ", "StatusInfo", status.status_info)
        _field(out, "  ", "VendorInfo", status.vendor_info)
        _field(out, "  ", "ProductVersion", status.product_version)
        _field(out, "  ", "StartTime", _time(status.start_time))
        _field(out, "  ", "SupportedLocaleIDs", ", ".join(status.supported_locale_ids))
        versions = [v for v in status.supported_interface_versions if v]
        _field(out, "  ", "SupportedInterfaceVersions", ", ".join(versions))


def _item(out: TextIO, item: ItemValue) -> None:
    out.write("  - Item\n")
    _field(out, "    ", "ItemName", item.item_name)
    _field(out, "    ", "ItemPath", item.item_path)
    _field(out, "    ", "ClientItemHandle", item.client_item_handle)
    if item.value is not None:
        value = item.value if item.value_type is None else f"{item.value} ({item.value_type})"
        out.write(f"    Value: {value}\n")
    _field(out, "    ", "ResultID", item.result_id)
    _field(out, "    ", "ValueTypeQualifier", item.value_type_qualifier)
    _field(out, "    ", "Timestamp", _time(item.timestamp))
    _field(out, "    ", "Quality", format_quality(item.quality))
    _field(out, "    ", "DiagnosticInfo", item.diagnostic_info)


def print_read(out: TextIO, resp: ReadResponse | None) -> None:
    """Write a Read reply: reply header, one block per item, then errors."""
    if resp is None:
        out.write("no response\n")
        return

    if resp.read_result is not None:
        _reply_base(out, "ReadResult", resp.read_result)

    if resp.items:
        out.write("Items:\n")
        for item in resp.items:
            _item(out, item)

    if resp.errors:
        out.write(f"Errors: {format_opc_errors(resp.errors)}\n")
