"""
Logging infrastructure for the autoheal agent.

Features:
- JSON structured logging on rotating per-stream files
- Correlation ID tracking (one id per monitoring tick)
- Multiple log streams (system, collection, detection, remediation, alerts)
- Thread-safe operation
"""

from .logger import (
    get_logger,
    setup_logging,
    LogContext,
    set_correlation_id,
    get_correlation_id,
    LogStream,
)

from .formatters import (
    JSONFormatter,
    ConsoleFormatter,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "set_correlation_id",
    "get_correlation_id",
    "LogStream",
    "JSONFormatter",
    "ConsoleFormatter",
]
