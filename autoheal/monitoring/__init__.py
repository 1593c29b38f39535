"""
Monitoring package.

COMPONENTS:
- MetricCollector: Concurrent polling of pluggable telemetry sources
- MetricStore: Bounded per-key metric history
- TrendAnalyzer: Recent-window trend classification
- IssueDetector / IssueRegistry: Breach -> Issue, active issue set

USAGE:
    from autoheal.monitoring import (
        MetricCollector,
        MetricStore,
        IssueDetector,
    )

    collector = MetricCollector(timeout_seconds=10)
    collector.register(source)

    store = MetricStore()
    store.extend(collector.collect())

    issues = IssueDetector().detect(store)
"""

from autoheal.monitoring.models import (
    Severity,
    MetricSource,
    Metric,
    IssueType,
    IssueStatus,
    Issue,
    Trend,
)

from autoheal.monitoring.store import MetricStore, metric_key
from autoheal.monitoring.trend import TrendAnalyzer
from autoheal.monitoring.source_health import SourceHealthTracker
from autoheal.monitoring.collector import TelemetrySource, MetricCollector
from autoheal.monitoring.detector import IssueDetector, IssueRegistry


__all__ = [
    "Severity",
    "MetricSource",
    "Metric",
    "IssueType",
    "IssueStatus",
    "Issue",
    "Trend",
    "MetricStore",
    "metric_key",
    "TrendAnalyzer",
    "SourceHealthTracker",
    "TelemetrySource",
    "MetricCollector",
    "IssueDetector",
    "IssueRegistry",
]
