"""Typed request and reply models for the OPC XML-DA operations used here."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from opcxmlda.xsd_datetime import XsdDateTime


class BrowseFilter(str, Enum):
    """Which kinds of elements a Browse returns."""

    ALL = "all"
    BRANCH = "branch"
    ITEM = "item"


class OPCError(BaseModel):
    """An error entry reported by the server alongside a reply."""

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, description="Qualified error ID, e.g. E_UNKNOWNITEMNAME")
    text: str = Field(default="", description="Error text in the requested locale")


class ReplyBase(BaseModel):
    """Reply header common to every operation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    rcv_time: XsdDateTime = Field(default_factory=XsdDateTime)
    reply_time: XsdDateTime = Field(default_factory=XsdDateTime)
    client_request_handle: str = ""
    revised_locale_id: str = ""
    server_state: str | None = None


class BrowseElement(BaseModel):
    """One entry of the server namespace.

    Identity is (item_path, item_name); `name` is only for display.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    item_path: str = ""
    item_name: str = ""
    is_item: bool = False
    has_children: bool = False


class BrowseRequest(BaseModel):
    """Arguments of a single Browse call (one page)."""

    locale_id: str = ""
    client_request_handle: str = ""
    item_path: str = ""
    item_name: str = ""
    continuation_point: str = Field(default="", description="Empty to start from the beginning")
    max_elements_returned: int = Field(default=0, ge=0, description="0 lets the server decide")
    browse_filter: BrowseFilter = BrowseFilter.ALL
    element_name_filter: str = ""
    vendor_filter: str = ""
    return_all_properties: bool = False
    return_property_values: bool = False
    return_error_text: bool = True


class BrowseResponse(BaseModel):
    """One page of Browse results."""

    model_config = ConfigDict(frozen=True)

    browse_result: ReplyBase | None = None
    elements: list[BrowseElement] = Field(default_factory=list)
    continuation_point: str = ""
    more_elements: bool = False
    errors: list[OPCError] = Field(default_factory=list)


class ServerStatus(BaseModel):
    """Server identification returned by GetStatus."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status_info: str = ""
    vendor_info: str = ""
    product_version: str = ""
    start_time: XsdDateTime = Field(default_factory=XsdDateTime)
    supported_locale_ids: list[str] = Field(default_factory=list)
    supported_interface_versions: list[str] = Field(default_factory=list)


class GetStatusResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    get_status_result: ReplyBase | None = None
    status: ServerStatus | None = None


class RequestOptions(BaseModel):
    """Options attached to a Read request."""

    return_error_text: bool = True
    return_diagnostic_info: bool = False
    return_item_time: bool = False
    return_item_path: bool = False
    return_item_name: bool = False
    client_request_handle: str = ""
    locale_id: str = ""


class ReadRequestItem(BaseModel):
    item_path: str = ""
    item_name: str = ""
    client_item_handle: str = ""


class ReadRequest(BaseModel):
    options: RequestOptions = Field(default_factory=RequestOptions)
    items: list[ReadRequestItem] = Field(default_factory=list)


class OPCQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    quality_field: str | None = None
    limit_field: str | None = None
    vendor_field: int = 0


class ItemValue(BaseModel):
    """Value, quality and timestamp of one item in a Read reply."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    item_path: str = ""
    item_name: str = ""
    client_item_handle: str = ""
    timestamp: XsdDateTime = Field(default_factory=XsdDateTime)
    result_id: str | None = None
    value_type_qualifier: str | None = None
    diagnostic_info: str = ""
    value: str | None = Field(default=None, description="Value text as sent on the wire")
    value_type: str | None = Field(default=None, description="xsi:type of the value, e.g. xsd:double")
    quality: OPCQuality | None = None


class ReadResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    read_result: ReplyBase | None = None
    items: list[ItemValue] = Field(default_factory=list)
    errors: list[OPCError] = Field(default_factory=list)
