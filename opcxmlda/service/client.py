"""OPC XML-DA SOAP client.

Usage:
    async with build_http_client(settings) as http:
        client = OpcXmlDaClient(settings.client.endpoint, http)
        status = await client.get_status()
        page = await client.browse(BrowseRequest(item_name="Channel1"))
"""

import xml.etree.ElementTree as ET

import httpx

from opcxmlda.errors import ProtocolError, TransportFailure
from opcxmlda.observability.logging import get_logger
from opcxmlda.service import soap
from opcxmlda.service.models import (
    BrowseRequest,
    BrowseResponse,
    GetStatusResponse,
    ReadRequest,
    ReadRequestItem,
    ReadResponse,
    RequestOptions,
)

logger = get_logger(__name__)

CONTENT_TYPE = "text/xml; charset=utf-8"


class OpcXmlDaClient:
    """Async client for the Browse, GetStatus and Read operations.

    The HTTP client is borrowed, not owned: closing it is the caller's job.

    Attributes:
        endpoint: Service URL the envelopes are posted to
    """

    def __init__(self, endpoint: str, http_client: httpx.AsyncClient) -> None:
        self.endpoint = endpoint
        self._http = http_client

    async def _call(self, operation: str, payload: ET.Element) -> ET.Element:
        """Post one envelope and return the reply's operation element.

        Raises:
            TransportFailure: On network errors and non-SOAP HTTP errors
            SoapFaultError: If the server replies with a fault
            ProtocolError: If the reply is not a usable SOAP envelope
        """
        logger.debug("soap_call", operation=operation, endpoint=self.endpoint)
        try:
            response = await self._http.post(
                self.endpoint,
                content=soap.build_envelope(payload),
                headers={"Content-Type": CONTENT_TYPE, "SOAPAction": soap.soap_action(operation)},
            )
        except httpx.HTTPError as e:
            raise TransportFailure(f"{operation}: {e}") from e

        if response.status_code >= 400:
            self._raise_for_status(operation, response)
        return soap.parse_envelope(response.content)

    @staticmethod
    def _raise_for_status(operation: str, response: httpx.Response) -> None:
        # SOAP 1.1 servers report faults with HTTP 500; surface those as faults.
        message = f"{operation}: HTTP {response.status_code} {response.reason_phrase}"
        try:
            soap.parse_envelope(response.content)
        except ProtocolError as e:
            raise TransportFailure(message, status_code=response.status_code) from e
        raise TransportFailure(message, status_code=response.status_code)

    async def browse(self, request: BrowseRequest) -> BrowseResponse:
        """Fetch one page of children of a node."""
        payload = await self._call("Browse", soap.encode_browse(request))
        return soap.decode_browse_response(payload)

    async def get_status(
        self,
        locale_id: str = "",
        client_request_handle: str = "",
    ) -> GetStatusResponse:
        """Request the server status."""
        payload = await self._call(
            "GetStatus",
            soap.encode_get_status(locale_id, client_request_handle),
        )
        return soap.decode_get_status_response(payload)

    async def read(self, request: ReadRequest) -> ReadResponse:
        """Read current values of the requested items."""
        payload = await self._call("Read", soap.encode_read(request))
        return soap.decode_read_response(payload)


async def fetch_node_value(
    client: OpcXmlDaClient,
    locale_id: str,
    client_request_handle: str,
    item_path: str,
    item_name: str,
) -> ReadResponse:
    """Read a single item with error text, diagnostics and item time.

    Raises:
        ValueError: If neither item_path nor item_name is given
    """
    if not item_path and not item_name:
        raise ValueError("read requires an item path or item name")

    request = ReadRequest(
        options=RequestOptions(
            return_error_text=True,
            return_diagnostic_info=True,
            return_item_time=True,
            return_item_path=True,
            return_item_name=True,
            client_request_handle=client_request_handle,
            locale_id=locale_id,
        ),
        items=[ReadRequestItem(item_path=item_path, item_name=item_name)],
    )
    return await client.read(request)
