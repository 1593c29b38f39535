"""Alert delivery to webhook endpoints."""

from autoheal.alerting.dispatcher import (
    AlertSeverity,
    Alert,
    AlertDispatcher,
    DEFAULT_SYSTEM_NAME,
)

__all__ = [
    "AlertSeverity",
    "Alert",
    "AlertDispatcher",
    "DEFAULT_SYSTEM_NAME",
]
