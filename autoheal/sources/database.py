"""
Data platform telemetry (Supabase REST probe).

A single lightweight read measures round-trip latency and reachability:
    db_response_time      milliseconds, threshold 2000   (high above)
    db_connection_status  1 reachable / 0 otherwise       (critical on failure)
"""

import time
from typing import List, Optional

import requests

from autoheal.logging import get_logger, LogStream
from autoheal.monitoring import Metric, MetricSource, Severity, TelemetrySource
from autoheal.time import Clock, SystemClock


DEFAULT_PROBE_TABLE = "organizations"


class DataPlatformSource(TelemetrySource):
    """Probes the data platform's REST endpoint."""

    name = MetricSource.DATA_PLATFORM

    def __init__(
        self,
        url: str,
        service_key: str,
        slow_threshold_ms: float = 2000,
        probe_table: str = DEFAULT_PROBE_TABLE,
        request_timeout: float = 5.0,
        clock: Optional[Clock] = None
    ):
        self.url = url.rstrip("/")
        self.service_key = service_key
        self.slow_threshold_ms = slow_threshold_ms
        self.probe_table = probe_table
        self.request_timeout = request_timeout
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.COLLECTION)

    def collect_metrics(self) -> List[Metric]:
        started = time.monotonic()
        try:
            response = requests.get(
                f"{self.url}/rest/v1/{self.probe_table}",
                headers={
                    "apikey": self.service_key,
                    "Authorization": f"Bearer {self.service_key}"
                },
                params={"select": "id", "limit": 1},
                timeout=self.request_timeout
            )
        except requests.RequestException as e:
            # Unreachable: report the outage as a metric, not a source failure
            self.logger.warning("Data platform probe failed", extra={"error": str(e)})
            return [self._status(False)]

        elapsed_ms = round((time.monotonic() - started) * 1000, 2)

        return [
            Metric(
                name="db_response_time",
                source=self.name,
                value=elapsed_ms,
                threshold=self.slow_threshold_ms,
                severity=Severity.HIGH if elapsed_ms > self.slow_threshold_ms else Severity.LOW,
                timestamp=self.clock.now()
            ),
            self._status(response.ok),
        ]

    def _status(self, reachable: bool) -> Metric:
        return Metric(
            name="db_connection_status",
            source=self.name,
            value=1 if reachable else 0,
            threshold=1,
            severity=Severity.LOW if reachable else Severity.CRITICAL,
            timestamp=self.clock.now()
        )
