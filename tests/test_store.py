"""
Tests for metric history and trend classification.

COVERAGE:
- MetricStore bounded FIFO series
- Copy-on-read accessors
- TrendAnalyzer windows and thresholds
"""

import pytest
from datetime import timedelta

from autoheal.monitoring import MetricStore, Trend, TrendAnalyzer, metric_key

from tests.fakes import T0, make_metric


def _series(values, name="db_response_time", source="supabase"):
    return [
        make_metric(name, source=source, value=v, timestamp=T0 + timedelta(seconds=i))
        for i, v in enumerate(values)
    ]


# ============================================================================
# METRIC STORE
# ============================================================================

class TestMetricStore:
    """Bounded per-key series."""

    def test_key_is_source_and_name(self):
        """Test series keys are source and name joined by an underscore."""
        metric = make_metric("db_response_time", source="supabase")

        assert metric.key == "supabase_db_response_time"
        assert metric_key("supabase", "db_response_time") == metric.key

    def test_series_capped_at_1000_oldest_evicted(self):
        """Test 1005 inserts keep the 1000 most recent metrics."""
        store = MetricStore()
        store.extend(_series(range(1005)))

        series = store.series_for("supabase_db_response_time")

        assert len(series) == 1000
        assert [m.value for m in series[:2]] == [5, 6]
        assert series[-1].value == 1004

    def test_small_capacity(self):
        """Test a custom capacity evicts the oldest entries."""
        store = MetricStore(capacity=3)
        store.extend(_series([1, 2, 3, 4]))

        assert [m.value for m in store.series_for("supabase_db_response_time")] == [2, 3, 4]

    def test_invalid_capacity(self):
        """Test a non-positive capacity is rejected."""
        with pytest.raises(ValueError):
            MetricStore(capacity=0)

    def test_latest(self):
        """Test latest() returns the newest metric of a series."""
        store = MetricStore()
        store.extend(_series([1, 2, 3]))

        assert store.latest("supabase_db_response_time").value == 3
        assert store.latest("unknown") is None

    def test_unknown_series_is_empty(self):
        """Test unknown keys read as empty."""
        assert MetricStore().series_for("nope") == []

    def test_series_are_kept_per_key(self):
        """Test each key keeps its own series."""
        store = MetricStore()
        store.append(make_metric("memory_usage", value=0.5))
        store.append(make_metric("cpu_usage", value=0.2))
        store.append(make_metric("memory_usage", value=0.6))

        assert len(store) == 2
        assert set(store.keys()) == {"application_memory_usage", "application_cpu_usage"}
        assert {k: m.value for k, m in store.latest_all().items()} == {
            "application_memory_usage": 0.6,
            "application_cpu_usage": 0.2,
        }

    def test_reads_are_copies(self):
        """Test mutating a returned series does not touch the store."""
        store = MetricStore()
        store.extend(_series([1, 2]))

        series = store.series_for("supabase_db_response_time")
        series.clear()
        snapshot = store.snapshot()
        snapshot["supabase_db_response_time"].append(make_metric("x"))

        assert len(store.series_for("supabase_db_response_time")) == 2


# ============================================================================
# TREND ANALYZER
# ============================================================================

class TestTrendAnalyzer:
    """Last three values against the three before them."""

    def test_increasing(self):
        """Test a rising window classifies as increasing."""
        assert TrendAnalyzer().trend(_series([10, 10, 10, 20, 20, 20])) == Trend.INCREASING

    def test_decreasing(self):
        """Test a falling window classifies as decreasing."""
        assert TrendAnalyzer().trend(_series([20, 20, 20, 10, 10, 10])) == Trend.DECREASING

    def test_stable(self):
        """Test a flat window classifies as stable."""
        assert TrendAnalyzer().trend(_series([10, 10, 10, 10, 10, 10])) == Trend.STABLE

    def test_single_point_is_stable(self):
        """Test one point is stable."""
        assert TrendAnalyzer().trend(_series([10])) == Trend.STABLE

    def test_empty_is_stable(self):
        """Test an empty series is stable."""
        assert TrendAnalyzer().trend([]) == Trend.STABLE

    def test_without_older_window_is_stable(self):
        """Test a series too short for an older window is stable."""
        assert TrendAnalyzer().trend(_series([1, 50, 100])) == Trend.STABLE

    def test_within_ten_percent_is_stable(self):
        """Test changes inside the 10% band are stable."""
        assert TrendAnalyzer().trend(_series([10, 10, 10, 10.5, 10.5, 10.5])) == Trend.STABLE

    def test_only_last_six_points_count(self):
        """Test points older than the last six are ignored."""
        values = [1000, 1000, 1000, 10, 10, 10, 10, 10, 10]

        assert TrendAnalyzer().trend(_series(values)) == Trend.STABLE

    def test_partial_older_window(self):
        """Test a short older window is averaged over what exists."""
        # older = [10], recent = [20, 20, 20]
        assert TrendAnalyzer().trend(_series([10, 20, 20, 20])) == Trend.INCREASING

    def test_trends_for_store(self):
        """Test trends() covers every key in the store."""
        store = MetricStore()
        store.extend(_series([10, 10, 10, 20, 20, 20]))
        store.extend(_series([5], name="cpu_usage", source="application"))

        assert TrendAnalyzer().trends(store) == {
            "supabase_db_response_time": Trend.INCREASING,
            "application_cpu_usage": Trend.STABLE,
        }
