"""
Action executors and the per-type dispatch table.

Concrete remediation (clearing caches, restarting services, scaling)
belongs to the host environment. The host registers one executor per
ActionType; the healer only knows the `execute(action) -> bool` contract.

Bundled executors:
- DryRunExecutor: logs what would be done and reports success
- WebhookActionExecutor: POSTs the action to a host-provided hook URL
"""

from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, Mapping, Optional

import requests

from autoheal.errors import ActionExecutionError
from autoheal.logging import get_logger, LogStream
from autoheal.recovery.actions import ActionType, AutoFixAction


class ActionExecutor(ABC):
    """Capability interface: run one action, report success."""

    @abstractmethod
    def execute(self, action: AutoFixAction) -> bool:
        pass


class DryRunExecutor(ActionExecutor):
    """Records intent without touching anything."""

    def __init__(self):
        self.logger = get_logger(LogStream.REMEDIATION)

    def execute(self, action: AutoFixAction) -> bool:
        self.logger.info(f"Would {action.type.value}: {action.target}", extra={
            "action_type": action.type.value,
            "target": action.target,
            "parameters": action.parameters,
            "dry_run": True
        })
        return True


class WebhookActionExecutor(ActionExecutor):
    """Delegates the action to an HTTP hook; any 2xx response is success."""

    def __init__(self, url: str, timeout_seconds: float = 10.0, headers: Optional[Dict[str, str]] = None):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.headers = headers or {}
        self.logger = get_logger(LogStream.REMEDIATION)

    def execute(self, action: AutoFixAction) -> bool:
        response = requests.post(
            self.url,
            json=action.to_dict(),
            headers=self.headers,
            timeout=self.timeout_seconds
        )

        if not response.ok:
            self.logger.warning(f"Action hook rejected {action.type.value}", extra={
                "action_type": action.type.value,
                "status_code": response.status_code
            })
        return response.ok


class ExecutorRegistry:
    """Dispatch table: ActionType -> ActionExecutor."""

    def __init__(self, executors: Optional[Mapping[ActionType, ActionExecutor]] = None):
        self._executors: Dict[ActionType, ActionExecutor] = dict(executors or {})
        self._lock = Lock()

    @classmethod
    def dry_run(cls) -> "ExecutorRegistry":
        """Registry with a DryRunExecutor for every action type."""
        executor = DryRunExecutor()
        return cls({action_type: executor for action_type in ActionType})

    def register(self, action_type: ActionType, executor: ActionExecutor) -> None:
        with self._lock:
            self._executors[action_type] = executor

    def get(self, action_type: ActionType) -> Optional[ActionExecutor]:
        with self._lock:
            return self._executors.get(action_type)

    def execute(self, action: AutoFixAction) -> bool:
        executor = self.get(action.type)
        if executor is None:
            raise ActionExecutionError(f"no executor registered for {action.type.value}")
        return bool(executor.execute(action))

    def __contains__(self, action_type: ActionType) -> bool:
        with self._lock:
            return action_type in self._executors
