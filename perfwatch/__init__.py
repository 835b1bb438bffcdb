"""
perfwatch: adaptive performance monitoring with baseline-relative anomaly
detection and cooldown-gated alerting.
"""

from perfwatch.monitor import MetricsCollector, PerformanceMonitor

__version__ = "0.1.0"

__all__ = ["MetricsCollector", "PerformanceMonitor", "__version__"]
