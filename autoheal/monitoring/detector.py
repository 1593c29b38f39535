"""
Issue detection from threshold-breaching metrics.

RULES (applied to the series key, first match wins):
    type:         'db_'/'database'          -> database
                  'error'/'failure'         -> error
                  'response_time'/'performance' -> performance
                  'connection'/'status'     -> availability
                  otherwise                 -> performance
    auto-fixable: key contains 'cache_', 'memory_', 'connection_' or 'performance_'
    suggested fix: 'cache' -> clear cache, 'memory' -> restart, 'connection' ->
                  reset connections, 'response_time' -> optimize queries,
                  otherwise manual investigation

Only the latest metric of each series is considered, and only when its
severity is high or critical.
"""

import dataclasses
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional

from autoheal.logging import get_logger, LogStream
from autoheal.monitoring.models import (
    Issue,
    IssueType,
    Metric,
    Severity,
    format_value,
)
from autoheal.monitoring.store import MetricStore
from autoheal.time import Clock, SystemClock, epoch_ms


# ============================================================================
# CLASSIFICATION RULES
# ============================================================================

_TYPE_RULES = (
    (("db_", "database"), IssueType.DATABASE),
    (("error", "failure"), IssueType.ERROR),
    (("response_time", "performance"), IssueType.PERFORMANCE),
    (("connection", "status"), IssueType.AVAILABILITY),
)

AUTO_FIXABLE_PATTERNS = ("cache_", "memory_", "connection_", "performance_")

_FIX_RULES = (
    ("cache", "Clear application cache"),
    ("memory", "Restart service to free memory"),
    ("connection", "Reset database connections"),
    ("response_time", "Optimize slow queries"),
)

MANUAL_FIX = "Manual investigation required"


def categorize_issue(key: str) -> IssueType:
    for patterns, issue_type in _TYPE_RULES:
        if any(p in key for p in patterns):
            return issue_type
    return IssueType.PERFORMANCE


def is_auto_fixable(key: str) -> bool:
    return any(p in key for p in AUTO_FIXABLE_PATTERNS)


def suggest_fix(key: str) -> str:
    for pattern, fix in _FIX_RULES:
        if pattern in key:
            return fix
    return MANUAL_FIX


def describe(key: str, metric: Metric) -> str:
    """'supabase db response time is 2500 (threshold: 2000)'"""
    return (
        f"{key.replace('_', ' ')} is {format_value(metric.value)} "
        f"(threshold: {format_value(metric.threshold)})"
    )


# ============================================================================
# ACTIVE ISSUE SET
# ============================================================================

class IssueRegistry:
    """
    Thread-safe set of active issues.

    With dedupe enabled, issues are keyed by metric key and a recurring
    breach refreshes the existing issue. Otherwise every breach is a new
    issue keyed by its id.
    """

    def __init__(self, dedupe: bool = True):
        self.dedupe = dedupe
        self._issues: Dict[str, Issue] = {}
        self._lock = Lock()

    def upsert(
        self,
        metric: Metric,
        description: str,
        seen_at,
        create: Callable[[], Issue]
    ) -> Issue:
        """Refresh the active issue for *metric*'s key or register a new one."""
        with self._lock:
            if self.dedupe:
                existing = self._issues.get(metric.key)
                if existing is not None:
                    existing.refresh(metric, description, seen_at)
                    return _copy_issue(existing)

            issue = create()
            slot = issue.metric_key if self.dedupe else issue.id
            self._issues[slot] = issue
            return _copy_issue(issue)

    def resolve(self, issue_id: str, resolved_at) -> Optional[Issue]:
        """Mark resolved and drop from the active set."""
        with self._lock:
            for slot, issue in list(self._issues.items()):
                if issue.id == issue_id:
                    issue.resolve(resolved_at)
                    del self._issues[slot]
                    return issue
        return None

    def mark_alerted(self, issue_id: str, at) -> None:
        with self._lock:
            for issue in self._issues.values():
                if issue.id == issue_id:
                    issue.last_alerted_at = at
                    return

    def get(self, issue_id: str) -> Optional[Issue]:
        with self._lock:
            for issue in self._issues.values():
                if issue.id == issue_id:
                    return _copy_issue(issue)
        return None

    def active(self) -> List[Issue]:
        """Copies of all active issues, oldest first."""
        with self._lock:
            issues = [_copy_issue(i) for i in self._issues.values()]
        return sorted(issues, key=lambda i: i.timestamp)

    def count_by_severity(self) -> Dict[Severity, int]:
        with self._lock:
            counts = {severity: 0 for severity in Severity}
            for issue in self._issues.values():
                counts[issue.severity] += 1
            return counts

    def __contains__(self, issue_id: str) -> bool:
        with self._lock:
            return any(i.id == issue_id for i in self._issues.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._issues)


def _copy_issue(issue: Issue) -> Issue:
    return dataclasses.replace(issue, metrics_snapshot=list(issue.metrics_snapshot))


# ============================================================================
# DETECTOR
# ============================================================================

class IssueDetector:
    """Turns the latest breaching metric of each series into an Issue."""

    def __init__(self, registry: Optional[IssueRegistry] = None, clock: Optional[Clock] = None):
        self.registry = registry or IssueRegistry()
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.DETECTION)

    def detect(self, store: MetricStore, keys: Optional[Iterable[str]] = None) -> List[Issue]:
        """
        Evaluate every series' latest metric.

        Args:
            store: Metric history
            keys: Restrict evaluation to these series (e.g. the ones
                refreshed this tick). None evaluates every series.

        Returns:
            One issue per breaching series for this tick (new or refreshed).
        """
        detected: List[Issue] = []

        latest_by_key = store.latest_all()
        if keys is not None:
            wanted = set(keys)
            latest_by_key = {k: m for k, m in latest_by_key.items() if k in wanted}

        for key, latest in latest_by_key.items():
            try:
                issue = self._evaluate(key, latest)
            except Exception as e:
                self.logger.error(
                    f"Detection failed for {key}",
                    extra={"metric_key": key, "error": str(e)},
                    exc_info=True
                )
                continue

            if issue is not None:
                detected.append(issue)

        if detected:
            self.logger.info("Issues detected", extra={
                "count": len(detected),
                "issue_ids": [i.id for i in detected]
            })

        return detected

    def _evaluate(self, key: str, metric: Metric) -> Optional[Issue]:
        if not metric.severity.is_breach:
            return None

        now = self.clock.now()
        description = describe(key, metric)

        def create() -> Issue:
            return Issue(
                id=f"{key}_{epoch_ms(now)}",
                metric_key=key,
                type=categorize_issue(key),
                severity=metric.severity,
                description=description,
                metrics_snapshot=[metric],
                auto_fixable=is_auto_fixable(key),
                suggested_fix=suggest_fix(key),
                timestamp=now,
            )

        issue = self.registry.upsert(metric, description, now, create)

        self.logger.warning(
            "New issue" if issue.occurrences == 1 else "Recurring issue",
            extra={
                "issue_id": issue.id,
                "metric_key": key,
                "issue_type": issue.type.value,
                "severity": issue.severity.value,
                "auto_fixable": issue.auto_fixable,
                "occurrences": issue.occurrences
            }
        )
        return issue
