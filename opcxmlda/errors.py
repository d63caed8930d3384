"""Exception hierarchy for the OPC XML-DA client.

All client exceptions inherit from OpcXmlDaError, which carries a
human-readable message. Browse failures carry the node whose expansion
failed and chain the underlying cause.
"""

from typing import Any


class OpcXmlDaError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TransportFailure(OpcXmlDaError):
    """Raised when the HTTP exchange itself fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SoapFaultError(OpcXmlDaError):
    """Raised when the server answers with a SOAP fault."""

    def __init__(self, message: str, code: str = "") -> None:
        super().__init__(message)
        self.code = code


class ProtocolError(OpcXmlDaError):
    """Raised when a reply reports OPC errors or cannot be decoded."""

    def __init__(self, message: str, errors: list[Any] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class XsdDateTimeError(OpcXmlDaError, ValueError):
    """Raised when an xsd:dateTime value cannot be parsed."""

    def __init__(self, value: str, reason: str = "") -> None:
        message = f"invalid xsd:dateTime {value!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.value = value


class BrowseError(OpcXmlDaError):
    """Raised when expanding a node of the browse tree fails."""

    def __init__(self, message: str, item_path: str = "", item_name: str = "") -> None:
        super().__init__(message)
        self.item_path = item_path
        self.item_name = item_name


class BrowseCancelledError(BrowseError):
    """Raised when a browse is cancelled or its deadline passes."""
