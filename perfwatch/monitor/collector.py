"""
In-process metrics collector.

A ready-made metrics provider for hosts that do not have their own. The
host records processed events and connection state; system metrics come
from psutil for the current process. The performance score is a weighted
blend of connection, processing and system component scores.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple

import psutil

BYTES_PER_GB = 1024 * 1024 * 1024

COMPONENT_WEIGHTS: Dict[str, float] = {
    "connection": 0.3,
    "processing": 0.5,
    "system": 0.2,
}


def _stepped_score(value: float, steps: List[Tuple[float, float]], floor: float) -> float:
    for limit, score in steps:
        if value < limit:
            return score
    return floor


def processing_time_score(average_ms: float) -> float:
    return _stepped_score(average_ms, [(10, 100.0), (50, 80.0), (100, 60.0), (500, 40.0)], 20.0)


def memory_score(memory_bytes: float) -> float:
    memory_gb = memory_bytes / BYTES_PER_GB
    return _stepped_score(memory_gb, [(0.5, 100.0), (1.0, 80.0), (2.0, 60.0)], 40.0)


def thread_score(thread_count: int) -> float:
    return _stepped_score(thread_count, [(100, 100.0), (500, 80.0), (1000, 60.0)], 40.0)


class MetricsCollector:
    """
    Thread-safe metrics provider.

    Processing metrics are computed over the most recent window_size events;
    totals are kept for the whole lifetime.
    """

    def __init__(self, window_size: int = 100, process: Optional[Any] = None) -> None:
        self._lock = threading.Lock()
        self._recent: Deque[Tuple[float, bool]] = deque(maxlen=window_size)
        self._events_processed = 0
        self._events_failed = 0
        self._connections: Dict[str, bool] = {}
        self._process = process if process is not None else psutil.Process()

    def record_event(self, duration_ms: float, success: bool = True) -> None:
        with self._lock:
            self._recent.append((float(duration_ms), bool(success)))
            if success:
                self._events_processed += 1
            else:
                self._events_failed += 1

    def set_connection(self, name: str, connected: bool) -> None:
        with self._lock:
            self._connections[name] = bool(connected)

    def remove_connection(self, name: str) -> None:
        with self._lock:
            self._connections.pop(name, None)

    def get_current_metrics(self) -> Dict[str, Any]:
        with self._lock:
            recent = list(self._recent)
            processed = self._events_processed
            failed = self._events_failed
            connections = dict(self._connections)

        processing = self._processing_metrics(recent, processed, failed)
        connection = self._connection_metrics(connections)
        system = self._system_metrics()

        return {
            "performance_score": self.performance_score(
                processing if recent else None,
                connection if connections else None,
                system,
            ),
            "processing_metrics": processing,
            "system_metrics": system,
            "connection_metrics": connection,
        }

    @staticmethod
    def performance_score(
        processing: Optional[Dict[str, Any]],
        connection: Optional[Dict[str, Any]],
        system: Dict[str, Any],
    ) -> float:
        """Weighted 0-100 score over the components that have data."""
        components: Dict[str, float] = {
            "system": (memory_score(system["memory_usage"]) + thread_score(system["thread_count"])) / 2.0,
        }
        if processing is not None:
            components["processing"] = (
                processing["success_rate"] + processing_time_score(processing["average_processing_time"])
            ) / 2.0
        if connection is not None and connection["total_connections"] > 0:
            components["connection"] = (
                connection["healthy_connections"] / connection["total_connections"] * 100.0
            )

        total_weight = sum(COMPONENT_WEIGHTS[name] for name in components)
        score = sum(COMPONENT_WEIGHTS[name] * value for name, value in components.items())
        return round(score / total_weight, 2)

    @staticmethod
    def _processing_metrics(
        recent: List[Tuple[float, bool]], processed: int, failed: int
    ) -> Dict[str, Any]:
        if recent:
            average = sum(duration for duration, _ in recent) / len(recent)
            successes = sum(1 for _, ok in recent if ok)
            success_rate = successes / len(recent) * 100.0
        else:
            average = 0.0
            success_rate = 100.0

        return {
            "events_processed": processed,
            "events_failed": failed,
            "success_rate": success_rate,
            "average_processing_time": average,
        }

    @staticmethod
    def _connection_metrics(connections: Dict[str, bool]) -> Dict[str, Any]:
        return {
            "total_connections": len(connections),
            "healthy_connections": sum(1 for connected in connections.values() if connected),
        }

    def _system_metrics(self) -> Dict[str, Any]:
        return {
            "memory_usage": self._process.memory_info().rss,
            "thread_count": self._process.num_threads(),
        }
