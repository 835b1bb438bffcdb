"""
Unit tests for monitor schema models.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from perfwatch.monitor.schema import (
    Alert,
    AnomalySeverity,
    AnomalyType,
    MetricsSnapshot,
    as_number,
)


def test_snapshot_from_mapping_ignores_unknown_keys():
    snapshot = MetricsSnapshot.from_raw(
        {
            "performance_score": 88.5,
            "processing_metrics": {"success_rate": 99.0},
            "deduplication_metrics": {"duplicates_found": 3},
        }
    )

    assert snapshot.performance_score == 88.5
    assert snapshot.processing_metrics == {"success_rate": 99.0}
    assert snapshot.system_metrics == {}
    assert snapshot.connection_metrics == {}


def test_snapshot_from_malformed_input_never_raises():
    snapshot = MetricsSnapshot.from_raw({"processing_metrics": [1, 2, 3], "system_metrics": "oops"})

    assert snapshot.performance_score == 0.0
    assert snapshot.processing_metrics == {}
    assert snapshot.system_metrics == {}

    assert MetricsSnapshot.from_raw(None).performance_score == 0.0


def test_snapshot_from_object_attributes():
    raw = SimpleNamespace(performance_score=70.0, system_metrics={"memory_usage": 1024})
    snapshot = MetricsSnapshot.from_raw(raw)

    assert snapshot.performance_score == 70.0
    assert snapshot.system_metrics == {"memory_usage": 1024}


def test_snapshot_from_snapshot_is_identity():
    snapshot = MetricsSnapshot(performance_score=50.0)
    assert MetricsSnapshot.from_raw(snapshot) is snapshot


def test_alert_is_frozen():
    alert = Alert(
        id="abc",
        type=AnomalyType.CONNECTION_DROP,
        severity=AnomalySeverity.HIGH,
        message="Connection count dropped to 1 (baseline: 10)",
        timestamp=datetime(2025, 2, 7, tzinfo=timezone.utc),
        metric_name="connection_drop",
        current_value=1.0,
        threshold_value=10.0,
    )

    with pytest.raises(ValidationError):
        alert.resolved_at = datetime(2025, 2, 8, tzinfo=timezone.utc)


def test_as_number():
    assert as_number(3) == 3.0
    assert as_number(2.5) == 2.5
    assert as_number(False) is None
    assert as_number("1") is None
    assert as_number(None) is None
