"""
Tests for the bundled telemetry sources.

HTTP is patched at requests.get; psutil is patched at the module level.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from autoheal.monitoring import Severity
from autoheal.sources import (
    ApplicationRuntimeSource,
    DataPlatformSource,
    DeploymentPlatformSource,
)


def _response(ok=True, status_code=200, payload=None):
    response = Mock(ok=ok, status_code=status_code)
    response.json.return_value = payload or {}
    if ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return response


def _by_name(metrics):
    return {m.name: m for m in metrics}


# ============================================================================
# DEPLOYMENT PLATFORM
# ============================================================================

class TestDeploymentPlatformSource:

    @patch("autoheal.sources.deployment.requests.get")
    def test_ready_deployment_and_usage(self, mock_get, clock):
        """Test a ready deployment with usage data."""
        mock_get.side_effect = [
            _response(payload={"deployments": [{"state": "READY"}]}),
            _response(payload={"total": {"requests": 1500, "errors": 10}}),
        ]
        source = DeploymentPlatformSource("token", team_id="team_1", clock=clock)

        metrics = _by_name(source.collect_metrics())

        assert metrics["deployment_status"].value == 1
        assert metrics["deployment_status"].severity == Severity.LOW
        assert metrics["requests_per_minute"].value == 1500
        assert metrics["requests_per_minute"].severity == Severity.MEDIUM
        assert metrics["error_rate"].severity == Severity.LOW
        assert all(m.source == "vercel" and m.timestamp == clock.now() for m in metrics.values())

        first_call = mock_get.call_args_list[0]
        assert first_call.args[0] == "https://api.vercel.com/v6/deployments"
        assert first_call.kwargs["headers"]["Authorization"] == "Bearer token"
        assert first_call.kwargs["params"] == {"limit": 1, "teamId": "team_1"}

    @patch("autoheal.sources.deployment.requests.get")
    def test_failed_deployment_is_critical(self, mock_get):
        """Test a failed deployment is critical."""
        mock_get.side_effect = [
            _response(payload={"deployments": [{"state": "ERROR"}]}),
            _response(payload={"total": {"requests": 10, "errors": 75}}),
        ]

        metrics = _by_name(DeploymentPlatformSource("token").collect_metrics())

        assert metrics["deployment_status"].value == 0
        assert metrics["deployment_status"].severity == Severity.CRITICAL
        assert metrics["error_rate"].severity == Severity.HIGH
        assert metrics["error_rate"].threshold == 50

    @patch("autoheal.sources.deployment.requests.get")
    def test_usage_unavailable(self, mock_get):
        """Test missing usage data yields only deployment status."""
        mock_get.side_effect = [
            _response(payload={"deployments": []}),
            _response(ok=False, status_code=403),
        ]

        assert DeploymentPlatformSource("token").collect_metrics() == []

    @patch("autoheal.sources.deployment.requests.get")
    def test_deployments_error_raises(self, mock_get):
        """Test a deployments API error propagates."""
        mock_get.return_value = _response(ok=False, status_code=401)

        with pytest.raises(requests.HTTPError):
            DeploymentPlatformSource("bad-token").collect_metrics()


# ============================================================================
# DATA PLATFORM
# ============================================================================

class TestDataPlatformSource:

    @patch("autoheal.sources.database.time")
    @patch("autoheal.sources.database.requests.get")
    def test_fast_probe(self, mock_get, mock_time):
        """Test a fast probe reports low response time and a live connection."""
        mock_get.return_value = _response()
        mock_time.monotonic.side_effect = [100.0, 100.25]

        metrics = _by_name(DataPlatformSource("https://x.supabase.co/", "key").collect_metrics())

        assert metrics["db_response_time"].value == 250.0
        assert metrics["db_response_time"].severity == Severity.LOW
        assert metrics["db_connection_status"].value == 1
        assert metrics["db_connection_status"].severity == Severity.LOW
        assert mock_get.call_args.args[0] == "https://x.supabase.co/rest/v1/organizations"
        assert mock_get.call_args.kwargs["headers"]["apikey"] == "key"

    @patch("autoheal.sources.database.time")
    @patch("autoheal.sources.database.requests.get")
    def test_slow_probe_is_high(self, mock_get, mock_time):
        """Test a slow probe is a high severity response time."""
        mock_get.return_value = _response()
        mock_time.monotonic.side_effect = [0.0, 2.5]

        metrics = _by_name(DataPlatformSource("https://x.supabase.co", "key").collect_metrics())

        assert metrics["db_response_time"].value == 2500.0
        assert metrics["db_response_time"].severity == Severity.HIGH
        assert metrics["db_response_time"].threshold == 2000

    @patch("autoheal.sources.database.requests.get")
    def test_error_response_marks_connection_critical(self, mock_get):
        """Test an error response marks the connection critical."""
        mock_get.return_value = _response(ok=False, status_code=500)

        metrics = _by_name(DataPlatformSource("https://x.supabase.co", "key").collect_metrics())

        assert metrics["db_connection_status"].value == 0
        assert metrics["db_connection_status"].severity == Severity.CRITICAL

    @patch("autoheal.sources.database.requests.get")
    def test_unreachable_reports_only_connection_status(self, mock_get):
        """Test an unreachable database reports only connection status."""
        mock_get.side_effect = requests.ConnectionError("no route to host")

        metrics = DataPlatformSource("https://x.supabase.co", "key").collect_metrics()

        assert [(m.name, m.value, m.severity) for m in metrics] == [
            ("db_connection_status", 0, Severity.CRITICAL)
        ]


# ============================================================================
# APPLICATION RUNTIME
# ============================================================================

class TestApplicationRuntimeSource:

    @patch("autoheal.sources.runtime.psutil")
    def test_memory_above_threshold_is_medium(self, mock_psutil):
        """Test memory above threshold is medium."""
        mock_psutil.virtual_memory.return_value = Mock(percent=85.0)
        mock_psutil.cpu_percent.return_value = 10.0

        metrics = _by_name(ApplicationRuntimeSource(memory_threshold=0.8).collect_metrics())

        assert metrics["memory_usage"].value == 0.85
        assert metrics["memory_usage"].severity == Severity.MEDIUM
        assert metrics["cpu_usage"].value == 0.1
        assert metrics["cpu_usage"].severity == Severity.LOW
        assert metrics["memory_usage"].key == "application_memory_usage"

    def test_real_host_values_are_ratios(self):
        """Test host readings are ratios between 0 and 1."""
        for metric in ApplicationRuntimeSource().collect_metrics():
            assert 0.0 <= metric.value <= 1.0
