"""
Per-source collection health.

Tracks consecutive collection failures for each telemetry source so the
dashboard can show which sources are currently contributing nothing.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, Optional


class SourceHealthTracker:
    """
    Tracks health of named telemetry sources.

    - `record_ok(name)` resets the failure counter for *name*.
    - `record_failure(name, error)` increments it.
    - `is_degraded(name)` returns True once consecutive failures
      reach the threshold.
    """

    def __init__(self, failure_threshold: int = 3) -> None:
        self._threshold: int = failure_threshold
        self._failures: Dict[str, int] = {}
        self._last_error: Dict[str, Optional[str]] = {}
        self._last_success: Dict[str, Optional[datetime]] = {}
        self._lock = threading.Lock()

    def record_ok(self, name: str, at: Optional[datetime] = None) -> None:
        with self._lock:
            self._failures[name] = 0
            self._last_error[name] = None
            self._last_success[name] = at

    def record_failure(self, name: str, error: str) -> None:
        with self._lock:
            self._failures[name] = self._failures.get(name, 0) + 1
            self._last_error[name] = error

    def consecutive_failures(self, name: str) -> int:
        with self._lock:
            return self._failures.get(name, 0)

    def is_degraded(self, name: str) -> bool:
        with self._lock:
            return self._failures.get(name, 0) >= self._threshold

    def get_status(self) -> Dict[str, Dict]:
        with self._lock:
            return {
                name: {
                    "consecutive_failures": count,
                    "degraded": count >= self._threshold,
                    "last_error": self._last_error.get(name),
                    "last_success": (
                        self._last_success[name].isoformat()
                        if self._last_success.get(name) else None
                    ),
                }
                for name, count in self._failures.items()
            }
