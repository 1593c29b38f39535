"""
Metric collection from pluggable telemetry sources.

ARCHITECTURE:
- Sources implement TelemetrySource.collect_metrics()
- All registered sources are polled concurrently once per cycle
- Each source has its own deadline; late or failing sources contribute
  zero metrics for that cycle
- A failing source never aborts collection for the others
- Each source has at most one call in flight; a call still running from
  an earlier cycle makes the source fail this cycle instead of stacking
  another thread

USAGE:
    collector = MetricCollector(timeout_seconds=10)
    collector.register(DataPlatformSource(url, key))
    collector.register(ApplicationRuntimeSource())

    metrics = collector.collect()
"""

import time
from abc import ABC, abstractmethod
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from threading import Lock, Thread
from typing import Dict, List, Optional

from autoheal.errors import SourceCollectionError
from autoheal.logging import get_logger, LogStream
from autoheal.monitoring.models import Metric
from autoheal.monitoring.source_health import SourceHealthTracker
from autoheal.time import Clock, SystemClock


# ============================================================================
# SOURCE INTERFACE
# ============================================================================

class TelemetrySource(ABC):
    """
    Capability interface for a telemetry source.

    Subclasses set `name` and may set `timeout_seconds` to override the
    collector's default deadline.
    """

    name: str = "source"
    timeout_seconds: Optional[float] = None

    @abstractmethod
    def collect_metrics(self) -> List[Metric]:
        """Return this cycle's observations."""
        pass


# ============================================================================
# COLLECTOR
# ============================================================================

class MetricCollector:
    """Polls every registered source with an individual deadline."""

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        health: Optional[SourceHealthTracker] = None,
        clock: Optional[Clock] = None
    ):
        """
        Args:
            timeout_seconds: Default per-source collection deadline
            health: Tracker that records per-source outcomes
            clock: Time source for health timestamps
        """
        self.timeout_seconds = timeout_seconds
        self.health = health or SourceHealthTracker()
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.COLLECTION)

        self._sources: Dict[str, TelemetrySource] = {}
        self._sources_lock = Lock()
        self._in_flight: Dict[str, Future] = {}

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def register(self, source: TelemetrySource) -> None:
        with self._sources_lock:
            if source.name in self._sources:
                raise ValueError(f"Source already registered: {source.name}")
            self._sources[source.name] = source

        self.logger.info(f"Registered telemetry source: {source.name}", extra={
            "source": source.name,
            "timeout_seconds": self._timeout_for(source)
        })

    def unregister(self, name: str) -> None:
        with self._sources_lock:
            if self._sources.pop(name, None) is not None:
                self.logger.info(f"Unregistered telemetry source: {name}")

    @property
    def sources(self) -> List[TelemetrySource]:
        with self._sources_lock:
            return list(self._sources.values())

    def _timeout_for(self, source: TelemetrySource) -> float:
        return source.timeout_seconds or self.timeout_seconds

    # ========================================================================
    # COLLECTION
    # ========================================================================

    def collect(self) -> List[Metric]:
        """
        Poll all sources concurrently.

        Returns:
            Concatenation of every healthy source's metrics, in
            registration order.
        """
        sources = self.sources
        if not sources:
            return []

        started = time.monotonic()
        metrics: List[Metric] = []

        pending = []
        for source in sources:
            future = self._submit(source)
            if future is None:
                self._record_failure(
                    source,
                    SourceCollectionError(source.name, "previous collection still running")
                )
                continue
            pending.append((source, future))

        for source, future in pending:
            remaining = self._timeout_for(source) - (time.monotonic() - started)
            try:
                result = future.result(timeout=max(0.0, remaining))
                collected = self._validate(source, result)
            except FutureTimeoutError:
                self._record_failure(
                    source,
                    SourceCollectionError(
                        source.name,
                        f"timed out after {self._timeout_for(source)}s"
                    )
                )
                continue
            except Exception as e:
                self._record_failure(source, e)
                continue

            self.health.record_ok(source.name, at=self.clock.now())
            metrics.extend(collected)

            self.logger.debug(f"Collected from {source.name}", extra={
                "source": source.name,
                "metric_count": len(collected)
            })

        self.logger.info("Collection cycle complete", extra={
            "sources": len(sources),
            "metrics": len(metrics),
            "duration_ms": round((time.monotonic() - started) * 1000, 2)
        })

        return metrics

    def _submit(self, source: TelemetrySource) -> Optional[Future]:
        """
        Start one collection call on a daemon thread.

        Returns None while the source's previous call is still running,
        so a hung source holds at most one thread and never blocks
        interpreter exit.
        """
        with self._sources_lock:
            previous = self._in_flight.get(source.name)
            if previous is not None and not previous.done():
                return None
            future: Future = Future()
            self._in_flight[source.name] = future

        Thread(
            target=self._call,
            args=(source, future),
            name=f"autoheal-collect-{source.name}",
            daemon=True
        ).start()
        return future

    @staticmethod
    def _call(source: TelemetrySource, future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(source.collect_metrics())
        except BaseException as e:
            future.set_exception(e)

    @property
    def in_flight(self) -> List[str]:
        """Names of sources whose last call has not returned yet."""
        with self._sources_lock:
            return [name for name, f in self._in_flight.items() if not f.done()]

    def _validate(self, source: TelemetrySource, result) -> List[Metric]:
        if result is None:
            return []

        collected = list(result)
        for item in collected:
            if not isinstance(item, Metric):
                raise SourceCollectionError(
                    source.name,
                    f"returned {type(item).__name__}, expected Metric"
                )
        return collected

    def _record_failure(self, source: TelemetrySource, error: Exception) -> None:
        self.health.record_failure(source.name, str(error))
        self.logger.warning(
            f"Metric collection failed: {source.name}",
            extra={
                "source": source.name,
                "error": str(error),
                "error_type": type(error).__name__,
                "consecutive_failures": self.health.consecutive_failures(source.name)
            },
            exc_info=not isinstance(error, SourceCollectionError)
        )
