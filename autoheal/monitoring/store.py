"""
Bounded in-memory metric history.

One FIFO ring buffer per series key ('<source>_<name>'). When a series
exceeds its capacity the oldest observations are evicted first.
"""

from collections import deque
from threading import Lock
from typing import Deque, Dict, List, Optional

from autoheal.monitoring.models import Metric


DEFAULT_SERIES_CAPACITY = 1000


def metric_key(source: str, name: str) -> str:
    """Series key for a (source, name) pair."""
    return f"{source}_{name}"


class MetricStore:
    """
    Thread-safe store of bounded metric series.

    USAGE:
        store = MetricStore(capacity=1000)
        store.append(metric)
        latest = store.latest("supabase_db_response_time")
    """

    def __init__(self, capacity: int = DEFAULT_SERIES_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self._series: Dict[str, Deque[Metric]] = {}
        self._lock = Lock()

    def append(self, metric: Metric) -> None:
        """Append to the metric's series, evicting the oldest entry on overflow."""
        with self._lock:
            series = self._series.get(metric.key)
            if series is None:
                series = deque(maxlen=self.capacity)
                self._series[metric.key] = series
            series.append(metric)

    def extend(self, metrics: List[Metric]) -> None:
        for metric in metrics:
            self.append(metric)

    def series_for(self, key: str) -> List[Metric]:
        """Copy of the series for *key*, oldest first (empty if unknown)."""
        with self._lock:
            return list(self._series.get(key, ()))

    def latest(self, key: str) -> Optional[Metric]:
        with self._lock:
            series = self._series.get(key)
            return series[-1] if series else None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._series.keys())

    def latest_all(self) -> Dict[str, Metric]:
        """Latest metric for every non-empty series."""
        with self._lock:
            return {key: series[-1] for key, series in self._series.items() if series}

    def snapshot(self) -> Dict[str, List[Metric]]:
        """Consistent copy of every series."""
        with self._lock:
            return {key: list(series) for key, series in self._series.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)
