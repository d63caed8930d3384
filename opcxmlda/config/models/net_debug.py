"""HTTP exchange tracing configuration."""

from pydantic import BaseModel, Field

DEFAULT_MAX_BODY_BYTES = 64 * 1024


class NetDebugConfig(BaseModel):
    """Network debug configuration.

    When enabled, every HTTP exchange is traced with redacted headers,
    bounded body previews and connection phase timing.
    """

    enabled: bool = Field(default=False, description="Trace HTTP exchanges")
    max_body_bytes: int = Field(
        default=DEFAULT_MAX_BODY_BYTES,
        ge=0,
        description="Body bytes captured per request/response for previews",
    )
