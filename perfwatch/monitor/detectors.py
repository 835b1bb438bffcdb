"""
Detectors for deviations from the performance baseline.

Implements explainable ratio checks:
- Performance score degradation
- Processing time spike (with an absolute floor)
- Error rate spike (success rate drop)
- Memory spike (severity scales with the ratio)
- Connection drop

Each check looks at one metric category and returns at most one anomaly.
Values that are not numeric skip the check instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from perfwatch.core.config import AnomalyThresholds

from .schema import Anomaly, AnomalySeverity, AnomalyType, Baseline, MetricsSnapshot, as_number


def _metric(metrics: Dict[str, Any], key: str, default: float) -> Optional[float]:
    if key not in metrics:
        return default
    return as_number(metrics[key])


@dataclass
class AnomalyDetector:
    """
    Stateless comparison of a snapshot against a baseline.

    No detector runs without a baseline, so the first cycle never reports
    anomalies.
    """

    thresholds: AnomalyThresholds = field(default_factory=AnomalyThresholds)

    def detect(self, snapshot: MetricsSnapshot, baseline: Optional[Baseline]) -> List[Anomaly]:
        if baseline is None:
            return []

        checks = (
            self.detect_performance_degradation,
            self.detect_processing_time_spike,
            self.detect_error_rate_spike,
            self.detect_memory_spike,
            self.detect_connection_drop,
        )
        anomalies = [check(snapshot, baseline) for check in checks]
        return [a for a in anomalies if a is not None]

    def detect_performance_degradation(
        self, snapshot: MetricsSnapshot, baseline: Baseline
    ) -> Optional[Anomaly]:
        score = as_number(snapshot.performance_score)
        baseline_score = as_number(baseline.performance_score)
        if score is None or baseline_score is None:
            return None

        if score < baseline_score * self.thresholds.performance_drop_ratio:
            return Anomaly(
                type=AnomalyType.PERFORMANCE_DEGRADATION,
                severity=AnomalySeverity.HIGH,
                current=score,
                baseline=baseline_score,
            )
        return None

    def detect_processing_time_spike(
        self, snapshot: MetricsSnapshot, baseline: Baseline
    ) -> Optional[Anomaly]:
        current = _metric(snapshot.processing_metrics, "average_processing_time", 0.0)
        reference = _metric(baseline.processing_metrics, "average_processing_time", 0.0)
        if current is None or reference is None:
            return None

        if (
            reference > 0
            and current > reference * self.thresholds.processing_time_spike
            and current > self.thresholds.min_processing_time_ms
        ):
            return Anomaly(
                type=AnomalyType.PROCESSING_TIME_SPIKE,
                severity=AnomalySeverity.MEDIUM,
                current=current,
                baseline=reference,
            )
        return None

    def detect_error_rate_spike(
        self, snapshot: MetricsSnapshot, baseline: Baseline
    ) -> Optional[Anomaly]:
        current = _metric(snapshot.processing_metrics, "success_rate", 100.0)
        reference = _metric(baseline.processing_metrics, "success_rate", 100.0)
        if current is None or reference is None:
            return None

        if current < reference * self.thresholds.success_rate_drop_ratio:
            # Reported as error rate, the complement of the success rate.
            return Anomaly(
                type=AnomalyType.ERROR_RATE_SPIKE,
                severity=AnomalySeverity.HIGH,
                current=100.0 - current,
                baseline=100.0 - reference,
            )
        return None

    def detect_memory_spike(
        self, snapshot: MetricsSnapshot, baseline: Baseline
    ) -> Optional[Anomaly]:
        current = _metric(snapshot.system_metrics, "memory_usage", 0.0)
        reference = _metric(baseline.system_metrics, "memory_usage", 0.0)
        if current is None or reference is None:
            return None

        if reference > 0 and current > reference * self.thresholds.memory_spike_threshold:
            spike_ratio = current / reference
            return Anomaly(
                type=AnomalyType.MEMORY_SPIKE,
                severity=self.memory_severity(spike_ratio),
                current=current,
                baseline=reference,
                spike_ratio=spike_ratio,
            )
        return None

    def detect_connection_drop(
        self, snapshot: MetricsSnapshot, baseline: Baseline
    ) -> Optional[Anomaly]:
        current = _metric(snapshot.connection_metrics, "total_connections", 0.0)
        reference = _metric(baseline.connection_metrics, "total_connections", 0.0)
        if current is None or reference is None:
            return None

        if reference > 0 and current < reference * self.thresholds.connection_drop_threshold:
            return Anomaly(
                type=AnomalyType.CONNECTION_DROP,
                severity=AnomalySeverity.HIGH,
                current=current,
                baseline=reference,
            )
        return None

    def memory_severity(self, spike_ratio: float) -> AnomalySeverity:
        if spike_ratio >= self.thresholds.memory_critical_ratio:
            return AnomalySeverity.CRITICAL
        if spike_ratio >= self.thresholds.memory_high_ratio:
            return AnomalySeverity.HIGH
        return AnomalySeverity.MEDIUM
