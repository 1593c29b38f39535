"""
Value objects for the monitoring pipeline.

Metric   - one timestamped observation from a telemetry source (immutable)
Issue    - a detected, possibly-remediable problem derived from a breach
Trend    - direction of a metric series over its recent window
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


# ============================================================================
# ENUMS
# ============================================================================

class Severity(Enum):
    """Metric / issue severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def is_breach(self) -> bool:
        """Only high and critical cross the detection boundary."""
        return self in (Severity.HIGH, Severity.CRITICAL)


class MetricSource:
    """Well-known telemetry source identifiers."""
    DEPLOYMENT = "vercel"         # Deployment platform
    DATA_PLATFORM = "supabase"    # Database / data platform
    APPLICATION = "application"   # Application runtime
    USER = "user"                 # Host-reported


class IssueType(Enum):
    """Issue category."""
    PERFORMANCE = "performance"
    ERROR = "error"
    AVAILABILITY = "availability"
    SECURITY = "security"
    DATABASE = "database"


class IssueStatus(Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class Trend(Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


def format_value(value: float) -> str:
    """Render integral floats without a trailing '.0' (2500.0 -> '2500')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ============================================================================
# METRIC
# ============================================================================

@dataclass(frozen=True)
class Metric:
    """Single observation from a telemetry source."""
    name: str
    source: str
    value: float
    threshold: float
    severity: Severity
    timestamp: datetime

    @property
    def key(self) -> str:
        """Series key: '<source>_<name>'."""
        return f"{self.source}_{self.name}"

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "source": self.source,
            "value": self.value,
            "threshold": self.threshold,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================================
# ISSUE
# ============================================================================

@dataclass
class Issue:
    """Problem derived from one breaching metric."""
    id: str
    metric_key: str
    type: IssueType
    severity: Severity
    description: str
    metrics_snapshot: List[Metric]
    auto_fixable: bool
    suggested_fix: Optional[str]
    timestamp: datetime
    status: IssueStatus = IssueStatus.ACTIVE
    occurrences: int = 1
    last_seen: Optional[datetime] = None
    last_alerted_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    def __post_init__(self):
        if self.last_seen is None:
            self.last_seen = self.timestamp

    @property
    def is_active(self) -> bool:
        return self.status == IssueStatus.ACTIVE

    @property
    def can_auto_heal(self) -> bool:
        return self.auto_fixable and bool(self.suggested_fix)

    def refresh(self, metric: Metric, description: str, seen_at: datetime):
        """Fold a recurring breach of the same key into this issue."""
        self.severity = metric.severity
        self.description = description
        self.metrics_snapshot = [metric]
        self.last_seen = seen_at
        self.occurrences += 1

    def resolve(self, resolved_at: datetime):
        self.status = IssueStatus.RESOLVED
        self.resolved_at = resolved_at

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "metric_key": self.metric_key,
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "metrics_snapshot": [m.to_dict() for m in self.metrics_snapshot],
            "auto_fixable": self.auto_fixable,
            "suggested_fix": self.suggested_fix,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "occurrences": self.occurrences,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
