"""
Core module: Configuration, logging, and exception handling.
"""

from .config import (
    AlertConfig,
    AnomalyThresholds,
    Config,
    HealthThresholds,
    MonitorConfig,
    SmoothingConfig,
    config,
)
from .exceptions import (
    ConfigurationError,
    MetricsCollectionError,
    MonitorError,
)

__all__ = [
    "AlertConfig",
    "AnomalyThresholds",
    "Config",
    "HealthThresholds",
    "MonitorConfig",
    "SmoothingConfig",
    "config",
    "ConfigurationError",
    "MetricsCollectionError",
    "MonitorError",
]
