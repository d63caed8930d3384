"""Observability configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Log level")
    format: LogFormat = Field(default="console", description="Output format")
    redact_secrets: bool = Field(
        default=True,
        description="Mask credential-bearing keys in log events",
    )


class MetricsConfig(BaseModel):
    """Metrics configuration.

    Metrics are always recorded in-process; when textfile_path is set they
    are written there on exit for the node exporter textfile collector.
    """

    textfile_path: str = Field(default="", description="Prometheus textfile output path")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )
    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Metrics settings",
    )
