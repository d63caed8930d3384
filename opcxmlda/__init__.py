"""OPC XML-DA browse, read and status client."""

__version__ = "0.1.0"
