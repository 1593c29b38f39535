"""
Stream loggers for the agent, with a per-tick correlation id.

Every agent log line belongs to one stream and is written to
logs/<stream>/<stream>.log in addition to the console:

    system       loop lifecycle, wiring, tick failures
    collection   telemetry source polling
    detection    breaches and issue records
    remediation  auto-fix actions and outcomes
    alerts       webhook delivery

The monitoring loop wraps each tick in LogContext("tick-<n>"), so every
record emitted during that tick, on any stream, carries the same
correlation_id.
"""

import logging
import logging.handlers
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import List, Optional


LOGGER_PREFIX = "autoheal"

_current_correlation: ContextVar[Optional[str]] = ContextVar("autoheal_correlation_id", default=None)


class LogStream:
    """Stream names; each maps to logger `autoheal.<stream>`."""
    SYSTEM = "system"
    COLLECTION = "collection"
    DETECTION = "detection"
    REMEDIATION = "remediation"
    ALERTS = "alerts"

    ALL = (SYSTEM, COLLECTION, DETECTION, REMEDIATION, ALERTS)


def get_logger(stream: str) -> logging.Logger:
    """
    Logger for one stream.

    Example:
        logger = get_logger(LogStream.DETECTION)
        logger.warning("New issue", extra={"issue_id": issue.id})
    """
    return logging.getLogger(f"{LOGGER_PREFIX}.{stream}")


# ============================================================================
# CORRELATION ID
# ============================================================================

def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind *correlation_id* (or a fresh uuid4) to the current context."""
    value = correlation_id or uuid.uuid4().hex
    _current_correlation.set(value)
    return value


def get_correlation_id() -> Optional[str]:
    return _current_correlation.get()


class LogContext:
    """
    Scoped correlation id; the previous id is restored on exit.

    Usage:
        with LogContext("tick-42"):
            collector.collect()
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or uuid.uuid4().hex
        self._token = None

    def __enter__(self) -> str:
        self._token = _current_correlation.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        _current_correlation.reset(self._token)
        return False


_base_record_factory = logging.getLogRecordFactory()


def _record_with_correlation(*args, **kwargs) -> logging.LogRecord:
    record = _base_record_factory(*args, **kwargs)
    record.correlation_id = _current_correlation.get()
    return record


# Applies to every record created in the process, not only agent streams
logging.setLogRecordFactory(_record_with_correlation)


# ============================================================================
# SETUP
# ============================================================================

_PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(correlation_id)s] %(message)s"

_configured = False
_installed: List[logging.Handler] = []


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _stream_file_handler(
    log_dir: Path,
    stream: str,
    level: int,
    json_logs: bool,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    from .formatters import JSONFormatter

    target = log_dir / stream
    target.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        target / f"{stream}.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_logs else logging.Formatter(_PLAIN_FORMAT))
    return handler


def _remove_installed() -> None:
    for handler in _installed:
        for name in ("",) + tuple(f"{LOGGER_PREFIX}.{s}" for s in LogStream.ALL):
            logging.getLogger(name or None).removeHandler(handler)
        handler.close()
    _installed.clear()


def setup_logging(
    log_dir: Path = Path("logs"),
    log_level: str = "INFO",
    console_level: str = "INFO",
    json_logs: bool = True,
    max_bytes: int = 10_000_000,
    backup_count: int = 5,
    force: bool = False
) -> None:
    """
    Install the console handler and one rotating file per stream.

    Args:
        log_dir: Base directory; files land in <log_dir>/<stream>/<stream>.log
        log_level: Level for the stream files
        console_level: Level for the console
        json_logs: JSONFormatter on files (plain text otherwise)
        max_bytes: Rotation size per file
        backup_count: Rotated files kept per stream
        force: Replace handlers from an earlier call
    """
    global _configured

    if _configured and not force:
        return

    from .formatters import ConsoleFormatter

    _remove_installed()

    log_dir = Path(log_dir)
    file_level = _level(log_level)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # handlers filter

    console = logging.StreamHandler()
    console.setLevel(_level(console_level))
    console.setFormatter(ConsoleFormatter())
    root.addHandler(console)
    _installed.append(console)

    for stream in LogStream.ALL:
        handler = _stream_file_handler(log_dir, stream, file_level, json_logs, max_bytes, backup_count)
        logger = get_logger(stream)
        logger.setLevel(logging.DEBUG)  # console and file handlers filter
        logger.addHandler(handler)
        _installed.append(handler)

    _configured = True

    get_logger(LogStream.SYSTEM).info("Logging configured", extra={
        "log_dir": str(log_dir),
        "log_level": log_level,
        "console_level": console_level,
        "json_logs": json_logs
    })
