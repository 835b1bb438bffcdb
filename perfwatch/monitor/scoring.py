"""
Health mapping for performance scores.
"""

from __future__ import annotations

from typing import Any, Optional

from perfwatch.core.config import HealthThresholds

from .schema import HealthStatus, as_number


def overall_health(score: Any, thresholds: Optional[HealthThresholds] = None) -> HealthStatus:
    """
    Map a performance score to a health label.

    Returns UNKNOWN when the score is not numeric.
    """
    thresholds = thresholds or HealthThresholds()
    value = as_number(score)
    if value is None:
        return HealthStatus.UNKNOWN
    if value >= thresholds.excellent:
        return HealthStatus.EXCELLENT
    if value >= thresholds.good:
        return HealthStatus.GOOD
    if value >= thresholds.fair:
        return HealthStatus.FAIR
    if value >= thresholds.poor:
        return HealthStatus.POOR
    return HealthStatus.CRITICAL
