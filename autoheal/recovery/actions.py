"""
Remediation action model.

An AutoFixAction is derived deterministically from an Issue:
    description mentions 'cache'  -> clear_cache on application
    description mentions 'memory' -> restart_service on application (graceful)
    otherwise                     -> update_config on system
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from autoheal.monitoring.models import Issue


class ActionType(Enum):
    """Remediation action variants."""
    RESTART_SERVICE = "restart_service"
    SCALE_UP = "scale_up"
    CLEAR_CACHE = "clear_cache"
    OPTIMIZE_QUERY = "optimize_query"
    UPDATE_CONFIG = "update_config"


@dataclass(frozen=True)
class AutoFixAction:
    """Remediation to run for an issue."""
    type: ActionType
    target: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    rollback_plan: str = ""

    def to_dict(self) -> Dict:
        return {
            "type": self.type.value,
            "target": self.target,
            "parameters": dict(self.parameters),
            "rollback_plan": self.rollback_plan,
        }


@dataclass(frozen=True)
class FixAttempt:
    """Outcome of one executed action."""
    action: AutoFixAction
    issue_id: str
    timestamp: datetime
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "action": self.action.to_dict(),
            "issue_id": self.issue_id,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "error": self.error,
        }


def build_action(issue: Issue) -> AutoFixAction:
    """Map an issue to its remediation action."""
    if "cache" in issue.description:
        return AutoFixAction(
            type=ActionType.CLEAR_CACHE,
            target="application",
            parameters={},
            rollback_plan="Cache will rebuild automatically"
        )

    if "memory" in issue.description:
        return AutoFixAction(
            type=ActionType.RESTART_SERVICE,
            target="application",
            parameters={"graceful": True},
            rollback_plan="Service will auto-restart if needed"
        )

    return AutoFixAction(
        type=ActionType.UPDATE_CONFIG,
        target="system",
        parameters={"issue": issue.id},
        rollback_plan="Revert configuration change"
    )
