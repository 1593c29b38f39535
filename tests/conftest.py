# tests/conftest.py
from __future__ import annotations

import pytest

from autoheal.monitoring import (
    IssueDetector,
    IssueRegistry,
    MetricCollector,
    MetricStore,
    TrendAnalyzer,
)
from autoheal.recovery import AutoHealer, ExecutorRegistry, FixHistory
from autoheal.runtime import MonitoringLoop
from autoheal.time import ManualClock

from tests.fakes import RecordingDispatcher


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def dispatcher(clock):
    return RecordingDispatcher(clock=clock)


@pytest.fixture
def store():
    return MetricStore()


@pytest.fixture
def registry():
    return IssueRegistry()


@pytest.fixture
def detector(registry, clock):
    return IssueDetector(registry=registry, clock=clock)


@pytest.fixture
def executors():
    return ExecutorRegistry()


@pytest.fixture
def healer(executors, registry, dispatcher, clock):
    return AutoHealer(
        executors=executors,
        registry=registry,
        dispatcher=dispatcher,
        history=FixHistory(limit=50),
        clock=clock
    )


@pytest.fixture
def make_loop(store, detector, healer, dispatcher, clock):
    """Factory: loop over the shared components with the given sources."""

    def _make(*sources, auto_fix_enabled=True, interval_seconds=30.0, cooldown=300.0, timeout_seconds=2.0):
        collector = MetricCollector(timeout_seconds=timeout_seconds, clock=clock)
        for source in sources:
            collector.register(source)

        return MonitoringLoop(
            collector=collector,
            store=store,
            detector=detector,
            healer=healer,
            dispatcher=dispatcher,
            trend_analyzer=TrendAnalyzer(),
            clock=clock,
            interval_seconds=interval_seconds,
            auto_fix_enabled=auto_fix_enabled,
            critical_realert_cooldown_seconds=cooldown
        )

    return _make
