"""
Monitoring control loop.

STATE MACHINE:
    IDLE --tick()--> RUNNING --done/failed--> IDLE

TICK SEQUENCE:
    collect -> store -> detect -> alert new criticals -> heal auto-fixable issues

Ticks never overlap: a lock guards tick(), whether called by the
scheduler thread or directly. Any exception inside a tick is caught,
reported as one critical self-alert, and the schedule continues.

USAGE:
    loop = MonitoringLoop(collector, store, detector, healer, dispatcher)
    loop.start()
    ...
    snapshot = loop.snapshot()
    loop.stop()
"""

import time
from datetime import timedelta
from enum import Enum
from threading import Event, Lock, Thread
from typing import List, Optional

from autoheal.alerting import AlertDispatcher, AlertSeverity
from autoheal.logging import get_logger, LogContext, LogStream
from autoheal.monitoring import (
    Issue,
    IssueDetector,
    MetricCollector,
    MetricStore,
    Severity,
    TrendAnalyzer,
)
from autoheal.recovery import AutoHealer
from autoheal.runtime.dashboard import DashboardSnapshot, calculate_system_health
from autoheal.time import Clock, SystemClock


class LoopState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class MonitoringLoop:
    """Fixed-interval scheduler for the collect/detect/heal/alert pipeline."""

    def __init__(
        self,
        collector: MetricCollector,
        store: MetricStore,
        detector: IssueDetector,
        healer: AutoHealer,
        dispatcher: AlertDispatcher,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        clock: Optional[Clock] = None,
        interval_seconds: float = 30.0,
        auto_fix_enabled: bool = True,
        critical_realert_cooldown_seconds: float = 300.0
    ):
        """
        Args:
            collector: Telemetry fan-out
            store: Metric history
            detector: Breach -> Issue
            healer: Remediation executor
            dispatcher: Alert delivery
            trend_analyzer: Trend projection for the dashboard
            clock: Time source
            interval_seconds: Fixed tick interval
            auto_fix_enabled: Run the healer for auto-fixable issues
            critical_realert_cooldown_seconds: Minimum gap between alerts
                for a critical issue that persists across ticks
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")

        self.collector = collector
        self.store = store
        self.detector = detector
        self.healer = healer
        self.dispatcher = dispatcher
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.clock = clock or SystemClock()
        self.interval_seconds = interval_seconds
        self.auto_fix_enabled = auto_fix_enabled
        self.realert_cooldown = timedelta(seconds=critical_realert_cooldown_seconds)
        self.logger = get_logger(LogStream.SYSTEM)

        self.state = LoopState.IDLE
        self.tick_count = 0
        self.failed_ticks = 0

        self._tick_lock = Lock()
        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        self._running = False

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def start(self) -> None:
        """Start the scheduler thread (first tick runs immediately)."""
        if self._running:
            self.logger.warning("MonitoringLoop already running")
            return

        self._running = True
        self._stop_event.clear()
        self.dispatcher.start()

        self._thread = Thread(
            target=self._run,
            name="MonitoringLoop",
            daemon=True
        )
        self._thread.start()

        self.logger.info("MonitoringLoop started", extra={
            "interval_seconds": self.interval_seconds,
            "auto_fix_enabled": self.auto_fix_enabled,
            "sources": [s.name for s in self.collector.sources]
        })

    def stop(self, timeout: float = 5.0) -> None:
        """Stop scheduling; an in-progress tick is allowed to finish."""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)

        # Drain alerts raised by the last tick
        self.dispatcher.stop(timeout=timeout)

        self.logger.info("MonitoringLoop stopped", extra={
            "tick_count": self.tick_count,
            "failed_ticks": self.failed_ticks
        })

    @property
    def is_running(self) -> bool:
        return self._running

    def _run(self) -> None:
        while self._running:
            started = time.monotonic()
            self.tick()

            # Fixed rate: subtract the time the tick took
            elapsed = time.monotonic() - started
            self._stop_event.wait(timeout=max(0.0, self.interval_seconds - elapsed))

    # ========================================================================
    # TICK
    # ========================================================================

    def tick(self) -> bool:
        """
        Run one full cycle.

        Returns:
            True if the cycle completed, False if it hit the failure boundary
        """
        with self._tick_lock:
            self.state = LoopState.RUNNING
            self.tick_count += 1
            tick_id = f"tick-{self.tick_count}"

            with LogContext(tick_id):
                try:
                    self._run_cycle()
                    return True
                except Exception as e:
                    self.failed_ticks += 1
                    self.logger.exception("Monitoring cycle failed", extra={
                        "tick": self.tick_count,
                        "error": str(e)
                    })
                    self.dispatcher.dispatch(
                        AlertSeverity.CRITICAL,
                        "Monitoring agent failure",
                        {"error": str(e), "error_type": type(e).__name__}
                    )
                    return False
                finally:
                    self.state = LoopState.IDLE

    def _run_cycle(self) -> None:
        metrics = self.collector.collect()
        self.store.extend(metrics)

        issues = self.detector.detect(self.store, keys={m.key for m in metrics})

        self._alert_critical(issues)

        if self.auto_fix_enabled:
            self._heal(issues)

        self.logger.info("Monitoring cycle complete", extra={
            "tick": self.tick_count,
            "metrics": len(metrics),
            "issues": len(issues),
            "active_issues": len(self.detector.registry)
        })

    def _alert_critical(self, issues: List[Issue]) -> None:
        now = self.clock.now()

        for issue in issues:
            if issue.severity != Severity.CRITICAL:
                continue

            if issue.occurrences > 1 and issue.last_alerted_at is not None:
                if now - issue.last_alerted_at < self.realert_cooldown:
                    continue

            self.dispatcher.dispatch(
                AlertSeverity.CRITICAL,
                f"Critical issue detected: {issue.description}",
                issue.to_dict()
            )
            self.detector.registry.mark_alerted(issue.id, now)

    def _heal(self, issues: List[Issue]) -> None:
        # Sequential: no two remediations contend for the same resource
        for issue in issues:
            if issue.can_auto_heal and issue.is_active:
                self.healer.heal(issue)

    # ========================================================================
    # DASHBOARD
    # ========================================================================

    def snapshot(self) -> DashboardSnapshot:
        """Copy-on-read view; never waits for a running tick."""
        registry = self.detector.registry
        return DashboardSnapshot(
            metrics=self.store.snapshot(),
            issues=registry.active(),
            auto_fix_history=self.healer.history.recent(),
            system_health=calculate_system_health(registry.count_by_severity()),
            generated_at=self.clock.now(),
            trends=self.trend_analyzer.trends(self.store),
            source_health=self.collector.health.get_status(),
            tick_count=self.tick_count
        )
