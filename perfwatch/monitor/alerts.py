"""
Alert generation for detected anomalies.

Turns anomalies into alerts while applying two independent brakes:
- per-type cooldown against unresolved recent alerts
- storm suppression for memory spikes, counted over a fixed window
"""

from __future__ import annotations

import secrets
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Deque, Dict, Generic, Iterable, Iterator, List, Set, TypeVar

from perfwatch.core.config import AlertConfig

from .schema import Alert, Anomaly, AnomalyType

T = TypeVar("T")

BYTES_PER_MB = 1024 * 1024


class BoundedHistory(Generic[T]):
    """
    Newest-first list with a hard capacity.

    Inserting past capacity drops the oldest items in the same step.
    """

    def __init__(self, capacity: int, items: Iterable[T] = ()) -> None:
        self._items: Deque[T] = deque(items, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def add(self, item: T) -> None:
        self._items.appendleft(item)

    def add_all(self, items: Iterable[T]) -> None:
        """Insert items so that the first one ends up newest."""
        for item in reversed(list(items)):
            self._items.appendleft(item)

    def replace(self, index: int, item: T) -> None:
        self._items[index] = item

    def take(self, limit: int) -> List[T]:
        return list(self._items)[: max(limit, 0)]

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


def _format_count(value: float) -> str:
    return f"{value:g}"


def _performance_message(anomaly: Anomaly) -> str:
    return (
        f"Performance score dropped to {anomaly.current:.1f} "
        f"(baseline: {anomaly.baseline:.1f})"
    )


def _processing_time_message(anomaly: Anomaly) -> str:
    return (
        f"Processing time increased to {anomaly.current:.1f}ms "
        f"(baseline: {anomaly.baseline:.1f}ms)"
    )


def _error_rate_message(anomaly: Anomaly) -> str:
    return (
        f"Error rate increased to {anomaly.current:.1f}% "
        f"(baseline: {anomaly.baseline:.1f}%)"
    )


def _memory_message(anomaly: Anomaly) -> str:
    memory_mb = anomaly.current / BYTES_PER_MB
    baseline_mb = anomaly.baseline / BYTES_PER_MB
    spike_ratio = anomaly.spike_ratio
    if spike_ratio is None:
        spike_ratio = anomaly.current / anomaly.baseline if anomaly.baseline else 0.0
    return (
        f"Memory usage spiked to {memory_mb:.1f}MB "
        f"(baseline: {baseline_mb:.1f}MB, {spike_ratio:.1f}x increase)"
    )


def _connection_message(anomaly: Anomaly) -> str:
    return (
        f"Connection count dropped to {_format_count(anomaly.current)} "
        f"(baseline: {_format_count(anomaly.baseline)})"
    )


MESSAGE_FORMATTERS: Dict[AnomalyType, Callable[[Anomaly], str]] = {
    AnomalyType.PERFORMANCE_DEGRADATION: _performance_message,
    AnomalyType.PROCESSING_TIME_SPIKE: _processing_time_message,
    AnomalyType.ERROR_RATE_SPIKE: _error_rate_message,
    AnomalyType.MEMORY_SPIKE: _memory_message,
    AnomalyType.CONNECTION_DROP: _connection_message,
}

_missing = set(AnomalyType) - set(MESSAGE_FORMATTERS)
if _missing:
    raise RuntimeError(f"No alert message formatter for: {sorted(t.value for t in _missing)}")


def format_alert_message(anomaly: Anomaly) -> str:
    """Human-readable message for an anomaly."""
    return MESSAGE_FORMATTERS[anomaly.type](anomaly)


def generate_alert_id() -> str:
    return secrets.token_hex(8)


@dataclass
class AlertManager:
    """
    Decides which anomalies become alerts.

    The manager holds no state; callers pass the recent alert list and
    insert the returned alerts themselves.
    """

    config: AlertConfig = field(default_factory=AlertConfig)

    def generate(
        self,
        anomalies: Iterable[Anomaly],
        recent_alerts: Iterable[Alert],
        cooldown: timedelta,
        now: datetime,
    ) -> List[Alert]:
        recent = list(recent_alerts)
        cooling_down = self.types_in_cooldown(recent, cooldown, now)

        alerts: List[Alert] = []
        for anomaly in anomalies:
            if anomaly.type in cooling_down:
                continue
            if self.should_suppress_memory_alert(anomaly, recent, now):
                continue
            alerts.append(self.build_alert(anomaly, now))
        return alerts

    def types_in_cooldown(
        self, recent_alerts: Iterable[Alert], cooldown: timedelta, now: datetime
    ) -> Set[AnomalyType]:
        return {
            alert.type
            for alert in recent_alerts
            if alert.is_active and now - alert.timestamp < cooldown
        }

    def should_suppress_memory_alert(
        self, anomaly: Anomaly, recent_alerts: Iterable[Alert], now: datetime
    ) -> bool:
        if anomaly.type is not AnomalyType.MEMORY_SPIKE:
            return False

        window = timedelta(seconds=self.config.storm_window_seconds)
        # Resolved alerts count too: this caps alert volume, not open alerts.
        recent_memory_alerts = sum(
            1
            for alert in recent_alerts
            if alert.type is AnomalyType.MEMORY_SPIKE and now - alert.timestamp < window
        )
        return recent_memory_alerts >= self.config.storm_limit

    def build_alert(self, anomaly: Anomaly, now: datetime) -> Alert:
        return Alert(
            id=generate_alert_id(),
            type=anomaly.type,
            severity=anomaly.severity,
            message=format_alert_message(anomaly),
            timestamp=now,
            metric_name=anomaly.type.value,
            current_value=anomaly.current,
            threshold_value=anomaly.baseline,
        )
