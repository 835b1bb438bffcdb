"""
Performance monitor engine.

Owns all monitor state and drives the periodic check cycle. Each cycle
takes a snapshot from the metrics provider, folds it into the baseline,
runs the detectors against the updated baseline and turns the anomalies
into alerts, then records history and statistics.

A single asyncio task owns the state. Timer ticks, forced checks, alert
resolution and threshold updates all go through its command queue, so a
cycle always runs to completion before the next command is handled. Read
operations return frozen records and never wait on a cycle.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Protocol, Union

from perfwatch.core.config import MonitorConfig, config as app_config
from perfwatch.core.exceptions import ConfigurationError, MetricsCollectionError, MonitorError
from perfwatch.core.logging_config import setup_logging

from .alerts import AlertManager, BoundedHistory, format_alert_message
from .baseline import BaselineTracker
from .detectors import AnomalyDetector
from .schema import (
    Alert,
    Anomaly,
    AnomalyHistoryEntry,
    Baseline,
    HealthStatus,
    MetricsSnapshot,
    MonitoringStats,
    PerformanceStatus,
)
from .scoring import overall_health

logger = setup_logging(__name__)


class MetricsProvider(Protocol):
    """Anything that can produce a metrics snapshot, sync or async."""

    def get_current_metrics(self) -> Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CommandKind(str, Enum):
    CHECK = "check"
    UPDATE_THRESHOLDS = "update_thresholds"
    RESOLVE_ALERT = "resolve_alert"
    STOP = "stop"


@dataclass
class _Command:
    kind: _CommandKind
    payload: Any = None
    reply: Optional["asyncio.Future[Any]"] = None


@dataclass
class MonitorState:
    """
    Mutable state owned by the monitor task.

    recent_alerts and anomaly_history are newest first and capped on insert.
    """

    config: MonitorConfig
    baseline: Optional[Baseline] = None
    recent_alerts: BoundedHistory[Alert] = field(init=False)
    anomaly_history: BoundedHistory[AnomalyHistoryEntry] = field(init=False)
    stats: MonitoringStats = field(default_factory=MonitoringStats)

    def __post_init__(self) -> None:
        self.recent_alerts = BoundedHistory(self.config.alerts.max_recent_alerts)
        self.anomaly_history = BoundedHistory(self.config.max_anomaly_history)


class PerformanceMonitor:
    """
    Adaptive performance monitor.

    Args:
        provider: object exposing get_current_metrics(), plain or coroutine
        config: monitor configuration, defaults to the global settings
        clock: returns the current time; injectable for tests

    Usage:
        async with PerformanceMonitor(collector) as monitor:
            ...
            status = await monitor.get_performance_status()
    """

    def __init__(
        self,
        provider: MetricsProvider,
        config: Optional[MonitorConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not callable(getattr(provider, "get_current_metrics", None)):
            raise ConfigurationError("metrics provider must define get_current_metrics()")

        self.provider = provider
        self.config = config or app_config.monitor
        self._clock = clock or _utcnow

        self._state = MonitorState(config=self.config)
        self._tracker = BaselineTracker(smoothing=self.config.smoothing)
        self._detector = AnomalyDetector(thresholds=self.config.thresholds)
        self._alert_manager = AlertManager(config=self.config.alerts)

        self._commands: "asyncio.Queue[_Command]" = asyncio.Queue()
        self._task: Optional["asyncio.Task[None]"] = None
        # sync provider call running on the executor, shared until it returns
        self._provider_call: Optional["asyncio.Future[Any]"] = None

    # Lifecycle

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(), name="perfwatch-monitor")
        logger.info(
            "Performance monitor started (interval=%ss, baseline_window=%smin)",
            self.config.monitoring_interval,
            self.config.baseline_window / 60,
        )

    async def stop(self) -> None:
        """Stop after the in-flight command, if any; no further timer is armed."""
        if self._task is None:
            return
        if not self._task.done():
            self._commands.put_nowait(_Command(_CommandKind.STOP))
            await self._task
        self._task = None
        logger.info("Performance monitor stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def wait_until_idle(self) -> None:
        """Wait until every command queued so far has been handled."""
        if not self.running:
            return
        await self._commands.join()

    async def __aenter__(self) -> "PerformanceMonitor":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # Commands

    def check_performance_now(self) -> None:
        """Queue an immediate check; returns without waiting for it."""
        self._submit(_Command(_CommandKind.CHECK))

    def update_thresholds(self, new_thresholds: Mapping[str, Any]) -> None:
        """
        Accepted for API compatibility.

        Thresholds are fixed at construction time; the request is only
        logged by the monitor task.
        """
        self._submit(_Command(_CommandKind.UPDATE_THRESHOLDS, dict(new_thresholds)))

    async def resolve_alert(self, alert_id: str) -> bool:
        """
        Mark an active alert as resolved.

        Returns False when no active alert has that id.

        Raises:
            MonitorError: the monitor is not running, or stopped before
                the request was handled
        """
        if not self.running:
            raise MonitorError("performance monitor is not running")
        reply: "asyncio.Future[bool]" = asyncio.get_running_loop().create_future()
        self._submit(_Command(_CommandKind.RESOLVE_ALERT, alert_id, reply))
        return await reply

    def _submit(self, command: _Command) -> None:
        if not self.running:
            logger.warning(
                "Monitor command %s ignored: monitor is not running", command.kind.value
            )
            return
        self._commands.put_nowait(command)

    # Reads

    def get_active_alerts(self) -> List[Alert]:
        active = [alert for alert in self._state.recent_alerts if alert.is_active]
        return active[: self.config.alerts.max_active_alerts]

    def get_baseline_stats(self) -> Optional[Baseline]:
        baseline = self._state.baseline
        return baseline.model_copy(deep=True) if baseline is not None else None

    def get_anomaly_history(self, limit: int = 50) -> List[AnomalyHistoryEntry]:
        return self._state.anomaly_history.take(limit)

    def get_stats(self) -> MonitoringStats:
        return self._state.stats

    async def get_performance_status(self) -> PerformanceStatus:
        """
        Status built from a fresh snapshot and the current state.

        Never raises: a provider failure yields a DEGRADED status carrying
        an error message.
        """
        try:
            snapshot = await self._fetch_snapshot()
        except MetricsCollectionError as e:
            logger.warning("Performance status degraded: %s", e)
            return self._build_status(
                HealthStatus.DEGRADED, 0.0, error="Unable to retrieve current metrics"
            )

        score = snapshot.performance_score
        return self._build_status(overall_health(score, self.config.health), score)

    def _build_status(
        self, health: HealthStatus, score: Any, error: Optional[str] = None
    ) -> PerformanceStatus:
        active_alerts = self.get_active_alerts()
        stats = self._state.stats
        return PerformanceStatus(
            overall_health=health,
            performance_score=score,
            active_alerts_count=len(active_alerts),
            active_alerts=active_alerts,
            baseline_available=self._state.baseline is not None,
            last_check=stats.last_check_time,
            monitoring_stats=stats,
            error=error,
        )

    # Owner task

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.config.monitoring_interval

        while True:
            timeout = max(next_tick - loop.time(), 0.0)
            try:
                command = await asyncio.wait_for(self._commands.get(), timeout=timeout)
            except asyncio.TimeoutError:
                await self._perform_check()
                next_tick = loop.time() + self.config.monitoring_interval
                continue

            try:
                if command.kind is _CommandKind.STOP:
                    self._drain_commands()
                    return
                await self._handle(command)
            except Exception as e:
                logger.exception("Monitor command %s failed: %s", command.kind.value, e)
                if command.reply is not None and not command.reply.done():
                    command.reply.set_exception(e)
            finally:
                self._commands.task_done()

    def _drain_commands(self) -> None:
        """Drop commands queued behind STOP; pending replies fail."""
        while True:
            try:
                command = self._commands.get_nowait()
            except asyncio.QueueEmpty:
                return
            if command.reply is not None and not command.reply.done():
                command.reply.set_exception(MonitorError("performance monitor stopped"))
            logger.debug("Monitor command %s dropped on stop", command.kind.value)
            self._commands.task_done()

    async def _handle(self, command: _Command) -> None:
        if command.kind is _CommandKind.CHECK:
            await self._perform_check()
        elif command.kind is _CommandKind.UPDATE_THRESHOLDS:
            logger.info(
                "Performance thresholds update requested (ignored): %s",
                sorted(command.payload),
            )
        elif command.kind is _CommandKind.RESOLVE_ALERT:
            resolved = self._resolve(command.payload)
            if command.reply is not None and not command.reply.done():
                command.reply.set_result(resolved)

    def _resolve(self, alert_id: str) -> bool:
        for index, alert in enumerate(self._state.recent_alerts):
            if alert.id == alert_id and alert.is_active:
                self._state.recent_alerts.replace(
                    index, alert.model_copy(update={"resolved_at": self._clock()})
                )
                logger.info("Alert %s (%s) resolved", alert.id, alert.type.value)
                return True
        return False

    async def _perform_check(self) -> None:
        try:
            snapshot = await self._fetch_snapshot()
        except MetricsCollectionError as e:
            logger.error("Performance check failed: %s", e)
            self._state.stats = self._state.stats.model_copy(
                update={"checks_failed": self._state.stats.checks_failed + 1}
            )
            return

        try:
            anomalies = self.process_snapshot(snapshot, self._clock())
        except Exception as e:
            logger.exception("Performance check processing failed: %s", e)
            return
        self._log_anomalies(anomalies)

    async def _fetch_snapshot(self) -> MetricsSnapshot:
        timeout = self.config.metrics_timeout
        try:
            raw = await asyncio.wait_for(self._call_provider(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise MetricsCollectionError(f"metrics provider timed out after {timeout}s") from e
        except Exception as e:
            raise MetricsCollectionError(f"metrics provider failed: {e!r}") from e
        return MetricsSnapshot.from_raw(raw)

    async def _call_provider(self) -> Any:
        fetch = self.provider.get_current_metrics
        if inspect.iscoroutinefunction(fetch):
            raw = await fetch()
        else:
            # a timed out call keeps its worker thread; later callers join it
            # instead of starting another one
            if self._provider_call is None or self._provider_call.done():
                self._provider_call = asyncio.get_running_loop().run_in_executor(None, fetch)
            raw = await asyncio.shield(self._provider_call)
        if inspect.isawaitable(raw):
            raw = await raw
        return raw

    def process_snapshot(self, snapshot: MetricsSnapshot, now: datetime) -> List[Anomaly]:
        """
        Run one pipeline step on an already fetched snapshot.

        Only the owner task calls this while the monitor is running.
        Anomalies are compared against the updated baseline.
        """
        state = self._state

        baseline = self._tracker.update(
            state.baseline, snapshot, timedelta(seconds=self.config.baseline_window), now
        )
        anomalies = self._detector.detect(snapshot, baseline)
        new_alerts = self._alert_manager.generate(
            anomalies,
            state.recent_alerts,
            timedelta(seconds=self.config.alert_cooldown),
            now,
        )

        if anomalies:
            state.anomaly_history.add(
                AnomalyHistoryEntry(
                    timestamp=now,
                    anomalies=anomalies,
                    performance_score=snapshot.performance_score,
                )
            )

        stats = state.stats
        state.stats = stats.model_copy(
            update={
                "checks_performed": stats.checks_performed + 1,
                "alerts_generated": stats.alerts_generated + len(new_alerts),
                "anomalies_detected": stats.anomalies_detected + len(anomalies),
                "last_check_time": now,
            }
        )
        state.baseline = baseline
        state.recent_alerts.add_all(new_alerts)

        return anomalies

    def _log_anomalies(self, anomalies: List[Anomaly]) -> None:
        if not anomalies:
            return

        for anomaly in anomalies:
            logger.warning(
                "Performance anomaly: %s - %s [severity: %s]",
                anomaly.type.value,
                format_alert_message(anomaly),
                anomaly.severity.value,
            )

        logger.warning(
            "Performance anomalies detected: count=%d types=%s active_alerts=%d",
            len(anomalies),
            [anomaly.type.value for anomaly in anomalies],
            len(self.get_active_alerts()),
        )
