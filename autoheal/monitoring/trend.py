"""
Trend classification over the recent window of a metric series.

The last three values are compared with the three before them:
    increasing  recent_avg > older_avg * 1.1
    decreasing  recent_avg < older_avg * 0.9
    stable      otherwise, or fewer than two points
"""

from typing import Dict, Sequence

from autoheal.monitoring.models import Metric, Trend
from autoheal.monitoring.store import MetricStore


class TrendAnalyzer:
    """Derives increasing / decreasing / stable from a series."""

    RECENT_POINTS = 3
    RISE_FACTOR = 1.1
    FALL_FACTOR = 0.9

    def trend(self, series: Sequence[Metric]) -> Trend:
        if len(series) < 2:
            return Trend.STABLE

        n = self.RECENT_POINTS
        recent = [m.value for m in series[-n:]]
        older = [m.value for m in series[-2 * n:-n]]

        # Two to three points: the older window is empty.
        if not older:
            return Trend.STABLE

        recent_avg = sum(recent) / len(recent)
        older_avg = sum(older) / len(older)

        if recent_avg > older_avg * self.RISE_FACTOR:
            return Trend.INCREASING
        if recent_avg < older_avg * self.FALL_FACTOR:
            return Trend.DECREASING
        return Trend.STABLE

    def trends(self, store: MetricStore, window: int = 10) -> Dict[str, Trend]:
        """Trend for every series in *store*, using its last *window* points."""
        return {
            key: self.trend(series[-window:])
            for key, series in store.snapshot().items()
        }
