"""SOAP service layer for OPC XML-DA."""

from opcxmlda.service.client import OpcXmlDaClient, fetch_node_value
from opcxmlda.service.models import (
    BrowseElement,
    BrowseFilter,
    BrowseRequest,
    BrowseResponse,
    GetStatusResponse,
    ItemValue,
    OPCError,
    OPCQuality,
    ReadRequest,
    ReadRequestItem,
    ReadResponse,
    ReplyBase,
    RequestOptions,
    ServerStatus,
)

__all__ = [
    "BrowseElement",
    "BrowseFilter",
    "BrowseRequest",
    "BrowseResponse",
    "GetStatusResponse",
    "ItemValue",
    "OPCError",
    "OPCQuality",
    "OpcXmlDaClient",
    "ReadRequest",
    "ReadRequestItem",
    "ReadResponse",
    "ReplyBase",
    "RequestOptions",
    "ServerStatus",
    "fetch_node_value",
]
