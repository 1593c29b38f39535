"""Application runtime telemetry from psutil (host memory and CPU ratios)."""

from typing import List, Optional

import psutil

from autoheal.monitoring import Metric, MetricSource, Severity, TelemetrySource
from autoheal.time import Clock, SystemClock


class ApplicationRuntimeSource(TelemetrySource):
    """memory_usage and cpu_usage as 0..1 ratios; medium above threshold."""

    name = MetricSource.APPLICATION

    def __init__(
        self,
        memory_threshold: float = 0.8,
        cpu_threshold: float = 0.9,
        clock: Optional[Clock] = None
    ):
        self.memory_threshold = memory_threshold
        self.cpu_threshold = cpu_threshold
        self.clock = clock or SystemClock()

    def collect_metrics(self) -> List[Metric]:
        now = self.clock.now()
        memory = psutil.virtual_memory().percent / 100.0
        cpu = psutil.cpu_percent(interval=None) / 100.0

        return [
            Metric(
                name="memory_usage",
                source=self.name,
                value=round(memory, 4),
                threshold=self.memory_threshold,
                severity=Severity.MEDIUM if memory > self.memory_threshold else Severity.LOW,
                timestamp=now
            ),
            Metric(
                name="cpu_usage",
                source=self.name,
                value=round(cpu, 4),
                threshold=self.cpu_threshold,
                severity=Severity.MEDIUM if cpu > self.cpu_threshold else Severity.LOW,
                timestamp=now
            ),
        ]
