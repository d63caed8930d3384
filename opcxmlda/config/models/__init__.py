"""Configuration model exports.

    from opcxmlda.config.models import ClientConfig, NetDebugConfig
"""

from opcxmlda.config.models.browse import BrowseConfig
from opcxmlda.config.models.client import ClientConfig
from opcxmlda.config.models.net_debug import DEFAULT_MAX_BODY_BYTES, NetDebugConfig
from opcxmlda.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)

__all__ = [
    "BrowseConfig",
    "ClientConfig",
    "DEFAULT_MAX_BODY_BYTES",
    "LoggingConfig",
    "MetricsConfig",
    "NetDebugConfig",
    "ObservabilityConfig",
]
