"""
Formatters for the stream log files (JSON) and the console (text).
"""

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict


# Attributes every LogRecord has; anything else on a record came from `extra=`
_RESERVED = set(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "correlation_id",
}

_SHORT_ID = 12


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value for key, value in vars(record).items()
        if key not in _RESERVED and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:

    {"timestamp": "...+00:00", "level": "WARNING", "logger": "autoheal.detection",
     "correlation_id": "tick-12", "message": "New issue",
     "extra": {"issue_id": "..."}, "source": {...}}

    `source` (file/line/function) is added for WARNING and above,
    `exception` when the record carries exc_info.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", None),
            "message": record.getMessage(),
        }

        extra = _extra_fields(record)
        if extra:
            payload["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        if record.levelno >= logging.WARNING:
            payload["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    [2026-10-19 10:30:45] [WARNING ] [DETECTION   ] [corr:tick-12] New issue

    Correlation ids longer than 12 characters (uuids) are cut to 8.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def _level(self, levelname: str) -> str:
        padded = f"{levelname:8}"
        if not self.use_colors:
            return padded
        return f"{self.COLORS.get(levelname, '')}{padded}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        stream = record.name.rsplit(".", 1)[-1].upper()

        corr = getattr(record, "correlation_id", None)
        if corr and len(corr) > _SHORT_ID:
            corr = corr[:8]
        corr_part = f" [corr:{corr}]" if corr else ""

        line = f"[{when}] [{self._level(record.levelname)}] [{stream:12}]{corr_part} {record.getMessage()}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line
