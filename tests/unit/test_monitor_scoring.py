"""
Unit tests for health scoring.
"""

import pytest

from perfwatch.core.config import HealthThresholds
from perfwatch.monitor.schema import HealthStatus
from perfwatch.monitor.scoring import overall_health


@pytest.mark.parametrize(
    "score,expected",
    [
        (100.0, HealthStatus.EXCELLENT),
        (90.0, HealthStatus.EXCELLENT),
        (89.99, HealthStatus.GOOD),
        (75, HealthStatus.GOOD),
        (50.0, HealthStatus.FAIR),
        (25.0, HealthStatus.POOR),
        (24.9, HealthStatus.CRITICAL),
        (0.0, HealthStatus.CRITICAL),
    ],
)
def test_overall_health_thresholds(score, expected):
    assert overall_health(score) == expected


@pytest.mark.parametrize("score", [None, "fast", True, {"score": 90}])
def test_non_numeric_score_is_unknown(score):
    assert overall_health(score) == HealthStatus.UNKNOWN


def test_custom_health_thresholds():
    thresholds = HealthThresholds(excellent=99.0, good=95.0, fair=80.0, poor=60.0)
    assert overall_health(90.0, thresholds) == HealthStatus.FAIR
