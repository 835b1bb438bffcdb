"""
Pytest configuration and shared fixtures.

Provides a controllable clock, scripted metrics providers and a monitor
configuration that never fires its interval timer on its own.
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from perfwatch.core.config import MonitorConfig

MB = 1024 * 1024


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class ScriptedProvider:
    """
    Sync metrics provider that replays queued responses.

    Each call consumes the next response; the last one repeats once the
    script runs out. Exception instances are raised instead of returned.
    """

    def __init__(self, *responses: Any) -> None:
        self._lock = threading.Lock()
        self._responses: List[Any] = list(responses)
        self._last: Any = None
        self.calls = 0

    def push(self, *responses: Any) -> None:
        with self._lock:
            self._responses.extend(responses)

    def get_current_metrics(self) -> Dict[str, Any]:
        with self._lock:
            self.calls += 1
            if self._responses:
                self._last = self._responses.pop(0)
            response = self._last
        if isinstance(response, Exception):
            raise response
        return response


class SlowAsyncProvider:
    """Async provider that sleeps longer than any reasonable timeout."""

    def __init__(self, delay: float = 10.0) -> None:
        self.delay = delay

    async def get_current_metrics(self) -> Dict[str, Any]:
        await asyncio.sleep(self.delay)
        return make_metrics()


class BlockingProvider:
    """Sync provider whose first call blocks until released."""

    def __init__(self) -> None:
        self.release = threading.Event()
        self.calls = 0

    def get_current_metrics(self) -> Dict[str, Any]:
        self.calls += 1
        if self.calls == 1:
            self.release.wait(timeout=5.0)
        return make_metrics()


def make_metrics(
    score: Any = 90.0,
    memory: Any = 100 * MB,
    processing_time: Any = 20.0,
    success_rate: Any = 99.0,
    connections: Any = 10,
) -> Dict[str, Any]:
    return {
        "performance_score": score,
        "processing_metrics": {
            "average_processing_time": processing_time,
            "success_rate": success_rate,
        },
        "system_metrics": {"memory_usage": memory},
        "connection_metrics": {"total_connections": connections},
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 2, 7, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider(make_metrics())


@pytest.fixture
def provider_factory():
    return ScriptedProvider


@pytest.fixture
def slow_provider() -> SlowAsyncProvider:
    return SlowAsyncProvider()


@pytest.fixture
def blocking_provider():
    provider = BlockingProvider()
    yield provider
    provider.release.set()


@pytest.fixture
def metrics_factory():
    return make_metrics


@pytest.fixture
def monitor_config() -> MonitorConfig:
    """
    Monitor configuration for tests.

    The interval is long enough that only forced checks run, unless a test
    overrides it.
    """
    return MonitorConfig(monitoring_interval=3600.0, metrics_timeout=1.0)


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
