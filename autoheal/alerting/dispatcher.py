"""
Webhook alert dispatcher.

ARCHITECTURE:
- One structured payload per alert: {severity, message, timestamp, system, data}
- dispatch() enqueues one delivery per webhook; a daemon worker POSTs
  them, so the caller (the monitoring tick) never waits on the network
- Per-endpoint failures are logged and never propagate (best-effort)
- Optional retry with exponential backoff per endpoint, on the worker
- Logs name a webhook by index and host only; the URL itself is a secret

USAGE:
    dispatcher = AlertDispatcher(
        webhooks=["https://hooks.example.com/ops"],
        system_name="WorkforceOne Global Admin"
    )
    dispatcher.start()
    dispatcher.dispatch(AlertSeverity.CRITICAL, "Database unreachable", {"source": "supabase"})
    ...
    dispatcher.stop()
"""

import json
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Condition, Thread
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

import requests

from autoheal.logging import get_correlation_id, get_logger, LogContext, LogStream
from autoheal.time import Clock, SystemClock


DEFAULT_SYSTEM_NAME = "WorkforceOne Global Admin"


class AlertSeverity(Enum):
    """Alert priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Alert:
    """Structured alert as delivered to webhooks."""
    severity: AlertSeverity
    message: str
    timestamp: datetime
    system: str
    data: Optional[Dict[str, Any]] = field(default=None)

    def to_dict(self) -> Dict:
        payload = {
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "system": self.system,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload


class AlertDispatcher:
    """
    Fan-out of alerts to webhook URLs.

    dispatch() only enqueues; a daemon worker POSTs each (alert, url)
    pair, so slow endpoints never hold up the caller. Delivery to one
    URL never affects delivery to the others, and dispatch() never raises.
    """

    def __init__(
        self,
        webhooks: Optional[Sequence[str]] = None,
        system_name: str = DEFAULT_SYSTEM_NAME,
        timeout_seconds: float = 10.0,
        max_retries: int = 0,
        clock: Optional[Clock] = None
    ):
        """
        Args:
            webhooks: Destination URLs
            system_name: Value of the payload's `system` field
            timeout_seconds: Per-request timeout
            max_retries: Extra attempts per URL after a failure
            clock: Time source for alert timestamps
        """
        self.webhooks: List[str] = list(webhooks or [])
        self.system_name = system_name
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.clock = clock or SystemClock()
        self.logger = get_logger(LogStream.ALERTS)

        self.sent_count = 0
        self.failed_count = 0

        # (webhook index, body, correlation id)
        self._send_queue: Deque[Tuple[int, str, Optional[str]]] = deque()
        self._queue_cond = Condition()
        self._unfinished = 0
        self._send_thread: Optional[Thread] = None
        self._running = False

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def start(self) -> None:
        """Start the delivery worker (dispatch() also starts it on demand)."""
        with self._queue_cond:
            if self._running:
                return
            self._running = True
            self._send_thread = Thread(
                target=self._send_worker,
                name="AlertDispatcher",
                daemon=True
            )
            self._send_thread.start()

        self.logger.info("Alert dispatcher started", extra={
            "webhooks": len(self.webhooks)
        })

    def stop(self, timeout: float = 10.0) -> None:
        """Let the worker drain the queue, waiting at most *timeout* seconds."""
        with self._queue_cond:
            if not self._running:
                return
            self._running = False
            self._queue_cond.notify_all()
            thread = self._send_thread

        if thread is not None and thread.is_alive():
            thread.join(timeout=timeout)

        self.logger.info("Alert dispatcher stopped", extra={
            "sent": self.sent_count,
            "failed": self.failed_count,
            "undelivered": self.pending
        })

    @property
    def pending(self) -> int:
        """Deliveries queued or in progress."""
        with self._queue_cond:
            return self._unfinished

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued delivery finished; False on timeout."""
        with self._queue_cond:
            return self._queue_cond.wait_for(lambda: self._unfinished == 0, timeout=timeout)

    # ========================================================================
    # DISPATCH
    # ========================================================================

    def dispatch(
        self,
        severity: AlertSeverity,
        message: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Alert:
        """
        Build an alert and queue it for every webhook.

        Returns:
            The alert that was built (also when delivery later fails)
        """
        alert = Alert(
            severity=severity,
            message=message,
            timestamp=self.clock.now(),
            system=self.system_name,
            data=data
        )

        self.logger.info(f"Alert [{severity.value}]: {message}", extra={
            "severity": severity.value,
            "webhooks": len(self.webhooks)
        })

        if not self.webhooks:
            return alert

        try:
            body = json.dumps(alert.to_dict(), default=str)
        except Exception as e:
            self.logger.error("Alert payload could not be serialized", extra={
                "error": str(e)
            }, exc_info=True)
            self.failed_count += len(self.webhooks)
            return alert

        self.start()

        correlation_id = get_correlation_id()
        with self._queue_cond:
            for index in range(len(self.webhooks)):
                self._send_queue.append((index, body, correlation_id))
                self._unfinished += 1
            self._queue_cond.notify_all()

        return alert

    # ========================================================================
    # DELIVERY
    # ========================================================================

    def _send_worker(self) -> None:
        while True:
            with self._queue_cond:
                while not self._send_queue and self._running:
                    self._queue_cond.wait()
                if not self._send_queue:
                    return
                index, body, correlation_id = self._send_queue.popleft()

            delivered = False
            try:
                with LogContext(correlation_id):
                    delivered = self._deliver(index, body)
            except Exception as e:
                self.logger.error("Send worker error", extra={
                    "error_type": type(e).__name__
                })
            finally:
                with self._queue_cond:
                    if delivered:
                        self.sent_count += 1
                    else:
                        self.failed_count += 1
                    self._unfinished -= 1
                    self._queue_cond.notify_all()

    def _deliver(self, index: int, body: str) -> bool:
        url = self.webhooks[index]
        target = redact_url(url)
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                response = requests.post(
                    url,
                    data=body,
                    headers={"Content-Type": "application/json"},
                    timeout=self.timeout_seconds
                )

                if 200 <= response.status_code < 300:
                    return True

                self.logger.error(f"Webhook returned {response.status_code}", extra={
                    "webhook": index,
                    "target": target,
                    "status_code": response.status_code,
                    "attempt": attempt + 1
                })

            except Exception as e:
                # requests puts the full URL in its messages and tracebacks
                self.logger.error(f"Webhook send failed (attempt {attempt + 1})", extra={
                    "webhook": index,
                    "target": target,
                    "error": scrub_url(str(e), url),
                    "error_type": type(e).__name__
                })

            if attempt < attempts - 1:
                time.sleep(2 ** attempt)  # Exponential backoff

        return False


def redact_url(url: str) -> str:
    """scheme://host/... ; webhook paths and queries carry tokens."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return "[REDACTED]"
    return f"{parts.scheme}://{parts.hostname}/..."


def scrub_url(text: str, url: str) -> str:
    parts = urlsplit(url)
    secrets = [url, parts.path, parts.query]
    for secret in sorted(filter(None, secrets), key=len, reverse=True):
        if secret != "/":
            text = text.replace(secret, "/...")
    return text
