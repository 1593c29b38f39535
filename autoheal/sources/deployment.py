"""
Deployment platform telemetry (Vercel REST API).

METRICS:
    deployment_status    1 if the latest deployment is READY else 0  (low / critical)
    requests_per_minute  usage total requests, threshold 1000        (medium above)
    error_rate           usage total errors, threshold 50            (high above)

The usage endpoint is optional; when it is unavailable only
deployment_status is reported.
"""

from typing import Dict, List, Optional

import requests

from autoheal.logging import get_logger, LogStream
from autoheal.monitoring import Metric, MetricSource, Severity, TelemetrySource
from autoheal.time import Clock, SystemClock


DEFAULT_BASE_URL = "https://api.vercel.com"

REQUESTS_THRESHOLD = 1000
ERRORS_THRESHOLD = 50


class DeploymentPlatformSource(TelemetrySource):
    """Polls the latest deployment state and usage totals."""

    name = MetricSource.DEPLOYMENT

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        team_id: Optional[str] = None,
        request_timeout: float = 5.0,
        clock: Optional[Clock] = None
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.team_id = team_id
        self.request_timeout = request_timeout
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.COLLECTION)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json"
        }

    def _params(self, **params) -> Dict:
        if self.team_id:
            params["teamId"] = self.team_id
        return params

    def _metric(self, name: str, value: float, threshold: float, severity: Severity) -> Metric:
        return Metric(
            name=name,
            source=self.name,
            value=value,
            threshold=threshold,
            severity=severity,
            timestamp=self.clock.now()
        )

    def collect_metrics(self) -> List[Metric]:
        metrics: List[Metric] = []

        response = requests.get(
            f"{self.base_url}/v6/deployments",
            headers=self._headers(),
            params=self._params(limit=1),
            timeout=self.request_timeout
        )
        response.raise_for_status()

        deployments = response.json().get("deployments") or []
        if deployments:
            ready = deployments[0].get("state") == "READY"
            metrics.append(self._metric(
                "deployment_status",
                1 if ready else 0,
                1,
                Severity.LOW if ready else Severity.CRITICAL
            ))

        usage = requests.get(
            f"{self.base_url}/v1/analytics/usage",
            headers=self._headers(),
            params=self._params(),
            timeout=self.request_timeout
        )

        if usage.ok:
            total = usage.json().get("total") or {}
            req_count = total.get("requests") or 0
            err_count = total.get("errors") or 0

            metrics.append(self._metric(
                "requests_per_minute",
                req_count,
                REQUESTS_THRESHOLD,
                Severity.MEDIUM if req_count > REQUESTS_THRESHOLD else Severity.LOW
            ))
            metrics.append(self._metric(
                "error_rate",
                err_count,
                ERRORS_THRESHOLD,
                Severity.HIGH if err_count > ERRORS_THRESHOLD else Severity.LOW
            ))
        else:
            self.logger.debug("Usage analytics unavailable", extra={
                "status_code": usage.status_code
            })

        return metrics
