"""
Auto-healer: issue -> action -> executor -> FixAttempt.

FLOW (one issue at a time, never concurrent):
1. Build the AutoFixAction for the issue by rule
2. Dispatch it to the executor registered for its ActionType
3. Record a FixAttempt (success or failure)
4. Success: resolve the issue, send a low alert
   Failure (False, exception, no executor): issue stays active, send a high alert

Failures are never retried within the same call; the issue is attempted
again only if its breach is detected on a later tick.
"""

from collections import deque
from threading import Lock
from typing import Deque, List, Optional

from autoheal.alerting import AlertDispatcher, AlertSeverity
from autoheal.logging import get_logger, LogStream
from autoheal.monitoring.detector import IssueRegistry
from autoheal.monitoring.models import Issue
from autoheal.recovery.actions import FixAttempt, build_action
from autoheal.recovery.executors import ExecutorRegistry
from autoheal.time import Clock, SystemClock


DEFAULT_FIX_HISTORY_LIMIT = 50


class FixHistory:
    """Append-only, bounded record of fix attempts (most recent kept)."""

    def __init__(self, limit: int = DEFAULT_FIX_HISTORY_LIMIT):
        self._attempts: Deque[FixAttempt] = deque(maxlen=limit)
        self._lock = Lock()

    def append(self, attempt: FixAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    def recent(self, limit: Optional[int] = None) -> List[FixAttempt]:
        """Oldest first; *limit* keeps only the newest entries."""
        with self._lock:
            attempts = list(self._attempts)
        return attempts[-limit:] if limit else attempts

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)


class AutoHealer:
    """
    Executes remediation for auto-fixable issues.

    USAGE:
        healer = AutoHealer(
            executors=ExecutorRegistry.dry_run(),
            registry=detector.registry,
            dispatcher=dispatcher
        )
        attempt = healer.heal(issue)
    """

    def __init__(
        self,
        executors: ExecutorRegistry,
        registry: IssueRegistry,
        dispatcher: AlertDispatcher,
        history: Optional[FixHistory] = None,
        clock: Optional[Clock] = None
    ):
        self.executors = executors
        self.registry = registry
        self.dispatcher = dispatcher
        self.history = history or FixHistory()
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.REMEDIATION)

    def heal(self, issue: Issue) -> FixAttempt:
        """Attempt remediation of *issue* and record the outcome."""
        action = build_action(issue)

        self.logger.info(f"Attempting auto-fix: {action.type.value}", extra={
            "issue_id": issue.id,
            "action_type": action.type.value,
            "target": action.target
        })

        error: Optional[str] = None
        try:
            success = self.executors.execute(action)
        except Exception as e:
            success = False
            error = f"{type(e).__name__}: {e}"
            self.logger.error(f"Auto-fix raised: {action.type.value}", extra={
                "issue_id": issue.id,
                "action_type": action.type.value,
                "error": str(e)
            }, exc_info=True)

        now = self.clock.now()
        attempt = FixAttempt(
            action=action,
            issue_id=issue.id,
            timestamp=now,
            success=success,
            error=error if not success else None
        )
        self.history.append(attempt)

        if success:
            resolved = self.registry.resolve(issue.id, now)
            self.logger.info(f"Auto-fixed: {issue.description}", extra={
                "issue_id": issue.id,
                "action_type": action.type.value,
                "resolved": resolved is not None
            })
            self.dispatcher.dispatch(
                AlertSeverity.LOW,
                f"Auto-fixed: {issue.description}",
                {"action": action.to_dict(), "issue": issue.to_dict()}
            )
        else:
            self.logger.warning(f"Auto-fix failed: {issue.description}", extra={
                "issue_id": issue.id,
                "action_type": action.type.value,
                "error": error
            })
            self.dispatcher.dispatch(
                AlertSeverity.HIGH,
                f"Auto-fix failed: {issue.description}",
                {"action": action.to_dict(), "issue": issue.to_dict(), "error": error}
            )

        return attempt
