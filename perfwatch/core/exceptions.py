"""
Custom exceptions for perfwatch.

The monitor never lets these escape a check cycle or a status read; they
mark the boundary where a failure is caught and turned into degraded
output.
"""


class MonitorError(Exception):
    """Base exception for performance monitor failures."""
    pass


class MetricsCollectionError(MonitorError):
    """Raised when the metrics provider fails or times out."""
    pass


class ConfigurationError(MonitorError):
    """Raised when configuration is invalid or missing."""
    pass
