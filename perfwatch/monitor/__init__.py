"""
Monitor module: Adaptive performance monitoring and anomaly alerting.

Implements the smoothed baseline, ratio detectors, cooldown-gated alerts,
health scoring and the single-owner monitor engine.
"""

from .alerts import AlertManager, BoundedHistory, format_alert_message
from .baseline import BaselineTracker, smooth_value
from .collector import MetricsCollector
from .detectors import AnomalyDetector
from .engine import MetricsProvider, MonitorState, PerformanceMonitor
from .schema import (
    Alert,
    Anomaly,
    AnomalyHistoryEntry,
    AnomalySeverity,
    AnomalyType,
    Baseline,
    HealthStatus,
    MetricsSnapshot,
    MonitoringStats,
    PerformanceStatus,
)
from .scoring import overall_health

__all__ = [
    "PerformanceMonitor",
    "MonitorState",
    "MetricsProvider",
    "MetricsCollector",
    "BaselineTracker",
    "smooth_value",
    "AnomalyDetector",
    "AlertManager",
    "BoundedHistory",
    "format_alert_message",
    "overall_health",
    "Alert",
    "Anomaly",
    "AnomalyHistoryEntry",
    "AnomalySeverity",
    "AnomalyType",
    "Baseline",
    "HealthStatus",
    "MetricsSnapshot",
    "MonitoringStats",
    "PerformanceStatus",
]
