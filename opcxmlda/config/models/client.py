"""Client connection configuration models."""

from pydantic import BaseModel, Field, SecretStr


class ClientConfig(BaseModel):
    """OPC XML-DA endpoint and request identity.

    Timeouts are in seconds; 0 disables the corresponding limit.
    """

    endpoint: str = Field(default="", description="OPC XML-DA endpoint URL")
    locale_id: str = Field(default="", description="LocaleID sent with every request")
    client_request_handle: str = Field(
        default="",
        description="ClientRequestHandle echoed back by the server",
    )
    username: str = Field(default="", description="Basic auth username")
    password: SecretStr | None = Field(default=None, description="Basic auth password")
    http_timeout: float = Field(
        default=30.0,
        ge=0.0,
        description="Connect/TLS handshake timeout in seconds",
    )
    request_timeout: float = Field(
        default=90.0,
        ge=0.0,
        description="End-to-end request timeout in seconds",
    )
