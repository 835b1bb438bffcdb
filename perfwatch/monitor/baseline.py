"""
Baseline tracking for performance monitoring.

Keeps one baseline per monitor. The baseline starts from the first
snapshot, follows later snapshots through exponential smoothing and is
rebuilt from scratch once it is older than the baseline window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from perfwatch.core.config import SmoothingConfig

from .schema import Baseline, MetricsSnapshot, as_number

MEMORY_FIELD = "memory_usage"


def smooth_value(baseline_value: Any, current_value: Any, alpha: float) -> Any:
    """
    Blend current_value into baseline_value with weight alpha.

    Returns baseline_value untouched when either side is not numeric.
    """
    old = as_number(baseline_value)
    new = as_number(current_value)
    if old is None or new is None:
        return baseline_value
    return old * (1.0 - alpha) + new * alpha


@dataclass
class BaselineTracker:
    """
    Exponential smoothing baseline with adaptive decay for memory.

    Only keys already present in the baseline are smoothed; the key set is
    fixed when the baseline is built and refreshed on every rebuild.
    """

    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)

    def update(
        self,
        baseline: Optional[Baseline],
        snapshot: MetricsSnapshot,
        window: timedelta,
        now: datetime,
    ) -> Baseline:
        if baseline is None:
            return self.create(snapshot, now)

        if now - baseline.created_at > window:
            return self.create(snapshot, now)

        alpha = self.smoothing.alpha
        return baseline.model_copy(
            update={
                "performance_score": smooth_value(
                    baseline.performance_score, snapshot.performance_score, alpha
                ),
                "processing_metrics": self._smooth_map(
                    baseline.processing_metrics, snapshot.processing_metrics, alpha
                ),
                "system_metrics": self._smooth_system_map(
                    baseline.system_metrics, snapshot.system_metrics, alpha
                ),
                "connection_metrics": self._smooth_map(
                    baseline.connection_metrics, snapshot.connection_metrics, alpha
                ),
            }
        )

    @staticmethod
    def create(snapshot: MetricsSnapshot, now: datetime) -> Baseline:
        return Baseline(
            created_at=now,
            performance_score=snapshot.performance_score,
            processing_metrics=dict(snapshot.processing_metrics),
            system_metrics=dict(snapshot.system_metrics),
            connection_metrics=dict(snapshot.connection_metrics),
        )

    def _smooth_map(
        self, baseline: Dict[str, Any], current: Dict[str, Any], alpha: float
    ) -> Dict[str, Any]:
        return {
            key: smooth_value(value, current.get(key), alpha)
            for key, value in baseline.items()
        }

    def _smooth_system_map(
        self, baseline: Dict[str, Any], current: Dict[str, Any], alpha: float
    ) -> Dict[str, Any]:
        smoothed: Dict[str, Any] = {}
        for key, value in baseline.items():
            current_value = current.get(key)
            if key == MEMORY_FIELD:
                smoothed[key] = smooth_value(
                    value, current_value, self._memory_alpha(value, current_value, alpha)
                )
            else:
                smoothed[key] = smooth_value(value, current_value, alpha)
        return smoothed

    def _memory_alpha(self, baseline_value: Any, current_value: Any, alpha: float) -> float:
        # memory above baseline * factor is absorbed at the spike alpha
        old = as_number(baseline_value)
        new = as_number(current_value)
        if old is not None and new is not None and new > old * self.smoothing.memory_spike_factor:
            return self.smoothing.memory_spike_alpha
        return alpha
