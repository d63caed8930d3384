"""Browse configuration models."""

from pydantic import BaseModel, Field


class BrowseConfig(BaseModel):
    """Namespace browse configuration."""

    max_depth: int = Field(
        default=1,
        ge=1,
        description="Maximum browse depth (1 = direct children only)",
    )
