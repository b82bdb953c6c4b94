"""Settings models and loading."""

from faultbridge.config.errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    PlaceholderResolutionError,
)
from faultbridge.config.loader import deep_merge, load_config
from faultbridge.config.models import (
    DEFAULT_MEMORY_LIMIT_INCREASE,
    AppSettings,
    LoggingSettings,
    MetricsSettings,
    ReportingSettings,
    ServiceSettings,
)

__all__ = [
    "DEFAULT_MEMORY_LIMIT_INCREASE",
    "AppSettings",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    "LoggingSettings",
    "MetricsSettings",
    "PlaceholderResolutionError",
    "ReportingSettings",
    "ServiceSettings",
    "deep_merge",
    "load_config",
]
