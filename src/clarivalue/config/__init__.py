"""
Configuration Layer

Application configuration with environment variable support.
"""

from clarivalue.config.settings import (
    AggregationSettings,
    ApplicationSettings,
    ClariValueConfig,
    DatabaseSettings,
    RemoteSettings,
    WeightingSettings,
    get_settings,
)

__all__ = [
    "AggregationSettings",
    "ApplicationSettings",
    "ClariValueConfig",
    "DatabaseSettings",
    "RemoteSettings",
    "WeightingSettings",
    "get_settings",
]
