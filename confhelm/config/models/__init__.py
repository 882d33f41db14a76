"""Configuration model exports.

    from confhelm.config.models import PropertiesConfig, LookupConfig
"""

from confhelm.config.models.lookup import LookupConfig
from confhelm.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from confhelm.config.models.properties import PropertiesConfig

__all__ = [
    "LoggingConfig",
    "LookupConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "PropertiesConfig",
]
