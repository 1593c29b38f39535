"""
Read-only dashboard projection of the agent's in-memory state.

System health score:
    100 - 30 * critical - 15 * high - 5 * medium, clipped to [0, 100]
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping

from autoheal.monitoring.models import Issue, Metric, Severity, Trend
from autoheal.recovery.actions import FixAttempt


SEVERITY_PENALTIES = {
    Severity.CRITICAL: 30,
    Severity.HIGH: 15,
    Severity.MEDIUM: 5,
    Severity.LOW: 0,
}


def calculate_system_health(counts: Mapping[Severity, int]) -> int:
    """Composite 0..100 score from active issue counts by severity."""
    score = 100 - sum(
        SEVERITY_PENALTIES[severity] * count
        for severity, count in counts.items()
    )
    return max(0, min(100, score))


@dataclass(frozen=True)
class DashboardSnapshot:
    """Consistent copy of metrics, active issues and fix history."""
    metrics: Dict[str, List[Metric]]
    issues: List[Issue]
    auto_fix_history: List[FixAttempt]
    system_health: int
    generated_at: datetime
    trends: Dict[str, Trend] = field(default_factory=dict)
    source_health: Dict[str, Dict] = field(default_factory=dict)
    tick_count: int = 0

    def to_dict(self) -> Dict:
        return {
            "metrics": {
                key: [m.to_dict() for m in series]
                for key, series in self.metrics.items()
            },
            "issues": [i.to_dict() for i in self.issues],
            "auto_fix_history": [a.to_dict() for a in self.auto_fix_history],
            "system_health": self.system_health,
            "trends": {key: trend.value for key, trend in self.trends.items()},
            "source_health": self.source_health,
            "generated_at": self.generated_at.isoformat(),
            "tick_count": self.tick_count,
        }
