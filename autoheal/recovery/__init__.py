"""
Remediation package.

COMPONENTS:
- build_action: Issue -> AutoFixAction rule
- ExecutorRegistry: ActionType -> ActionExecutor dispatch table
- AutoHealer: runs one action per issue and records a FixAttempt
"""

from autoheal.recovery.actions import (
    ActionType,
    AutoFixAction,
    FixAttempt,
    build_action,
)

from autoheal.recovery.executors import (
    ActionExecutor,
    DryRunExecutor,
    WebhookActionExecutor,
    ExecutorRegistry,
)

from autoheal.recovery.healer import AutoHealer, FixHistory


__all__ = [
    "ActionType",
    "AutoFixAction",
    "FixAttempt",
    "build_action",
    "ActionExecutor",
    "DryRunExecutor",
    "WebhookActionExecutor",
    "ExecutorRegistry",
    "AutoHealer",
    "FixHistory",
]
