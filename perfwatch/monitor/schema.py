"""
Schema definitions for performance monitoring.

Snapshots come from an external provider and are treated as loosely typed
maps. Everything the monitor produces (baselines, anomalies, alerts,
history entries) is a frozen model, so records handed to readers can never
change under them.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnomalyType(str, Enum):
    """Kinds of deviation the detector can report."""

    PERFORMANCE_DEGRADATION = "performance_degradation"
    PROCESSING_TIME_SPIKE = "processing_time_spike"
    ERROR_RATE_SPIKE = "error_rate_spike"
    MEMORY_SPIKE = "memory_spike"
    CONNECTION_DROP = "connection_drop"


class AnomalySeverity(str, Enum):
    """Severity levels for anomalies and alerts."""

    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class HealthStatus(str, Enum):
    """Overall health label derived from the performance score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"
    UNKNOWN = "unknown"
    DEGRADED = "degraded"


def as_number(value: Any) -> Optional[float]:
    """
    Return value as a float, or None when it is not a real number.

    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _as_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items()}
    return {}


class MetricsSnapshot(BaseModel):
    """
    Point-in-time metrics reported by the provider.

    Fields:
    - performance_score: overall score, normally a float in [0, 100]
    - processing_metrics: average_processing_time (ms), success_rate (0-100), ...
    - system_metrics: memory_usage (bytes), ...
    - connection_metrics: total_connections, ...

    Unknown keys inside the sub-maps are kept; they are simply never read.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    performance_score: Any = 0.0
    processing_metrics: Dict[str, Any] = Field(default_factory=dict)
    system_metrics: Dict[str, Any] = Field(default_factory=dict)
    connection_metrics: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> "MetricsSnapshot":
        """
        Build a snapshot from whatever the provider returned.

        Never raises: a missing score becomes 0.0 and malformed sub-maps
        become empty dicts.
        """
        if isinstance(raw, MetricsSnapshot):
            return raw
        if isinstance(raw, Mapping):
            get = raw.get
        else:
            def get(key: str, default: Any = None) -> Any:
                return getattr(raw, key, default)

        return cls(
            performance_score=get("performance_score", 0.0),
            processing_metrics=_as_dict(get("processing_metrics")),
            system_metrics=_as_dict(get("system_metrics")),
            connection_metrics=_as_dict(get("connection_metrics")),
        )


class Baseline(BaseModel):
    """
    Slowly evolving expected values for every monitored metric.

    Same shape as MetricsSnapshot plus the creation time that drives the
    periodic rebuild.
    """

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    performance_score: Any = 0.0
    processing_metrics: Dict[str, Any] = Field(default_factory=dict)
    system_metrics: Dict[str, Any] = Field(default_factory=dict)
    connection_metrics: Dict[str, Any] = Field(default_factory=dict)


class Anomaly(BaseModel):
    """
    A single deviation of a current metric from its baseline.

    Fields:
    - type: which check fired
    - severity: categorical severity
    - current: observed value (error rate for error_rate_spike)
    - baseline: baseline value it was compared against
    - spike_ratio: current / baseline, set for memory spikes
    """

    model_config = ConfigDict(frozen=True)

    type: AnomalyType
    severity: AnomalySeverity
    current: float
    baseline: float
    spike_ratio: Optional[float] = None


class Alert(BaseModel):
    """
    Deduplicated record that an anomaly was worth surfacing.

    An alert is active while resolved_at is None.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: AnomalyType
    severity: AnomalySeverity
    message: str
    timestamp: datetime
    metric_name: str
    current_value: float
    threshold_value: float
    resolved_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.resolved_at is None


class AnomalyHistoryEntry(BaseModel):
    """Anomalies found by one eventful check cycle."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    anomalies: List[Anomaly]
    performance_score: Any = 0.0


class MonitoringStats(BaseModel):
    """
    Running counters kept by the monitor.

    checks_failed counts cycles skipped because the provider failed.
    """

    model_config = ConfigDict(frozen=True)

    checks_performed: int = 0
    checks_failed: int = 0
    alerts_generated: int = 0
    anomalies_detected: int = 0
    last_check_time: Optional[datetime] = None


class PerformanceStatus(BaseModel):
    """
    Point-in-time status report.

    error is only set when overall_health is DEGRADED.
    """

    model_config = ConfigDict(frozen=True)

    overall_health: HealthStatus
    performance_score: Any
    active_alerts_count: int
    active_alerts: List[Alert]
    baseline_available: bool
    last_check: Optional[datetime] = None
    monitoring_stats: MonitoringStats
    error: Optional[str] = None
