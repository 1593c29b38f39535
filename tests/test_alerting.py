"""
Tests for webhook alert delivery.

COVERAGE:
- Payload shape
- Queued delivery off the caller's thread
- Per-endpoint isolation (exceptions and non-2xx)
- Retry with backoff
- Webhook URLs kept out of the logs
"""

import json
import logging
import threading
import time
from unittest.mock import Mock, patch

import pytest
import requests

from autoheal.alerting import AlertDispatcher, AlertSeverity
from autoheal.alerting.dispatcher import redact_url, scrub_url
from autoheal.time import ManualClock


FAILING = "https://hooks.example.com/down"
WORKING = "https://hooks.example.com/ok"
TOKEN_URL = "https://discord.com/api/webhooks/123/SECRETTOKEN"


def _ok(status_code=200):
    return Mock(status_code=status_code)


@pytest.fixture
def make_dispatcher():
    """Factory that stops every dispatcher it built."""
    built = []

    def _make(**kwargs):
        dispatcher = AlertDispatcher(**kwargs)
        built.append(dispatcher)
        return dispatcher

    yield _make

    for dispatcher in built:
        dispatcher.stop(timeout=2)


class TestAlertPayload:

    def test_to_dict_shape(self, make_dispatcher):
        """Test the payload carries severity, message, timestamp, system and data."""
        clock = ManualClock()
        dispatcher = make_dispatcher(clock=clock)

        alert = dispatcher.dispatch(AlertSeverity.HIGH, "Auto-fix failed: x", {"issue": {"id": "x_1"}})

        assert alert.to_dict() == {
            "severity": "high",
            "message": "Auto-fix failed: x",
            "timestamp": clock.now().isoformat(),
            "system": "WorkforceOne Global Admin",
            "data": {"issue": {"id": "x_1"}},
        }

    def test_data_is_optional(self, make_dispatcher):
        """Test data is left out of the payload when not given."""
        alert = make_dispatcher(system_name="ops").dispatch(AlertSeverity.LOW, "hello")

        assert "data" not in alert.to_dict()
        assert alert.system == "ops"

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_no_webhooks_sends_nothing(self, mock_post, make_dispatcher):
        """Test nothing is posted or queued without webhooks."""
        dispatcher = make_dispatcher()

        dispatcher.dispatch(AlertSeverity.CRITICAL, "nothing configured")

        assert dispatcher.pending == 0
        mock_post.assert_not_called()

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_posts_json_body(self, mock_post, make_dispatcher):
        """Test the alert is POSTed as JSON with the configured timeout."""
        mock_post.return_value = _ok()
        dispatcher = make_dispatcher(webhooks=[WORKING], timeout_seconds=4)

        dispatcher.dispatch(AlertSeverity.CRITICAL, "Database unreachable", {"source": "supabase"})
        assert dispatcher.flush(timeout=5)

        args, kwargs = mock_post.call_args
        body = json.loads(kwargs["data"])
        assert args[0] == WORKING
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["timeout"] == 4
        assert body["severity"] == "critical"
        assert body["message"] == "Database unreachable"
        assert body["system"] == "WorkforceOne Global Admin"
        assert body["data"] == {"source": "supabase"}
        assert dispatcher.sent_count == 1


class TestQueuedDelivery:

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_dispatch_returns_while_endpoints_are_slow(self, mock_post, make_dispatcher):
        """Test dispatch() does not wait for slow webhooks."""
        gate = threading.Event()

        def slow_post(url, **kwargs):
            gate.wait(5)
            return _ok()

        mock_post.side_effect = slow_post
        dispatcher = make_dispatcher(webhooks=[WORKING, FAILING, "https://hooks.example.com/third"])

        started = time.monotonic()
        dispatcher.dispatch(AlertSeverity.CRITICAL, "Monitoring agent failure")
        elapsed = time.monotonic() - started

        assert elapsed < 0.5
        assert dispatcher.pending == 3

        gate.set()
        assert dispatcher.flush(timeout=5)
        assert dispatcher.sent_count == 3

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_stop_drains_queue(self, mock_post, make_dispatcher):
        """Test stop() delivers what was already queued."""
        mock_post.return_value = _ok()
        dispatcher = make_dispatcher(webhooks=[WORKING])

        dispatcher.dispatch(AlertSeverity.LOW, "one")
        dispatcher.dispatch(AlertSeverity.LOW, "two")
        dispatcher.stop(timeout=5)

        assert mock_post.call_count == 2
        assert dispatcher.pending == 0

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_restart_after_stop(self, mock_post, make_dispatcher):
        """Test a stopped dispatcher delivers again once dispatched to."""
        mock_post.return_value = _ok()
        dispatcher = make_dispatcher(webhooks=[WORKING])
        dispatcher.start()
        dispatcher.stop(timeout=5)

        dispatcher.dispatch(AlertSeverity.LOW, "after restart")

        assert dispatcher.flush(timeout=5)
        assert dispatcher.sent_count == 1


class TestDeliveryIsolation:

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_failing_endpoint_does_not_block_others(self, mock_post, make_dispatcher):
        """Test an endpoint that raises does not stop delivery to the next one."""
        def fake_post(url, **kwargs):
            if url == FAILING:
                raise requests.ConnectionError("connection refused")
            return _ok()

        mock_post.side_effect = fake_post
        dispatcher = make_dispatcher(webhooks=[FAILING, WORKING])

        dispatcher.dispatch(AlertSeverity.CRITICAL, "Monitoring agent failure")
        assert dispatcher.flush(timeout=5)

        called_urls = [c.args[0] for c in mock_post.call_args_list]
        assert called_urls == [FAILING, WORKING]
        assert dispatcher.sent_count == 1
        assert dispatcher.failed_count == 1

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_non_2xx_is_logged_not_raised(self, mock_post, make_dispatcher):
        """Test a 500 response counts as a failed delivery."""
        mock_post.return_value = _ok(status_code=500)
        dispatcher = make_dispatcher(webhooks=[FAILING])

        dispatcher.dispatch(AlertSeverity.HIGH, "boom")
        assert dispatcher.flush(timeout=5)

        assert dispatcher.failed_count == 1

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_unserializable_data_is_stringified(self, mock_post, make_dispatcher):
        """Test non-JSON values in data are sent as strings."""
        mock_post.return_value = _ok()
        dispatcher = make_dispatcher(webhooks=[WORKING])

        dispatcher.dispatch(AlertSeverity.LOW, "x", {"obj": object()})
        assert dispatcher.flush(timeout=5)

        body = json.loads(mock_post.call_args.kwargs["data"])
        assert body["data"]["obj"].startswith("<object object")


class TestRetries:

    @patch("autoheal.alerting.dispatcher.time.sleep")
    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_retry_then_success(self, mock_post, mock_sleep, make_dispatcher):
        """Test a timeout is retried after a 1s backoff."""
        mock_post.side_effect = [requests.Timeout("slow"), _ok(204)]
        dispatcher = make_dispatcher(webhooks=[WORKING], max_retries=2)

        dispatcher.dispatch(AlertSeverity.MEDIUM, "retry me")
        assert dispatcher.flush(timeout=5)

        assert mock_post.call_count == 2
        mock_sleep.assert_called_once_with(1)
        assert dispatcher.sent_count == 1

    @patch("autoheal.alerting.dispatcher.time.sleep")
    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_gives_up_after_max_retries(self, mock_post, mock_sleep, make_dispatcher):
        """Test delivery stops after max_retries extra attempts."""
        mock_post.return_value = _ok(502)
        dispatcher = make_dispatcher(webhooks=[FAILING], max_retries=1)

        dispatcher.dispatch(AlertSeverity.MEDIUM, "never delivered")
        assert dispatcher.flush(timeout=5)

        assert mock_post.call_count == 2
        assert dispatcher.failed_count == 1


class TestWebhookSecrets:

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_failed_delivery_never_logs_url(self, mock_post, make_dispatcher, caplog):
        """Test the tokenized webhook URL appears in no log record."""
        mock_post.side_effect = requests.ConnectionError(
            f"Max retries exceeded with url: /api/webhooks/123/SECRETTOKEN ({TOKEN_URL})"
        )
        dispatcher = make_dispatcher(webhooks=[TOKEN_URL])

        with caplog.at_level(logging.DEBUG, logger="autoheal.alerts"):
            dispatcher.dispatch(AlertSeverity.CRITICAL, "Monitoring agent failure")
            assert dispatcher.flush(timeout=5)

        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert errors
        assert errors[0].target == "https://discord.com/..."
        assert errors[0].webhook == 0
        for record in caplog.records:
            assert "SECRETTOKEN" not in json.dumps(vars(record), default=str)
        assert "SECRETTOKEN" not in caplog.text

    @patch("autoheal.alerting.dispatcher.requests.post")
    def test_non_2xx_never_logs_url(self, mock_post, make_dispatcher, caplog):
        """Test status-code failures name the webhook by index and host."""
        mock_post.return_value = _ok(status_code=404)
        dispatcher = make_dispatcher(webhooks=[WORKING, TOKEN_URL])

        with caplog.at_level(logging.DEBUG, logger="autoheal.alerts"):
            dispatcher.dispatch(AlertSeverity.HIGH, "boom")
            assert dispatcher.flush(timeout=5)

        assert sorted(r.webhook for r in caplog.records if hasattr(r, "webhook")) == [0, 1]
        assert "SECRETTOKEN" not in caplog.text

    def test_redact_url(self):
        """Test only scheme and host survive redaction."""
        assert redact_url(TOKEN_URL) == "https://discord.com/..."
        assert redact_url("not a url") == "[REDACTED]"

    def test_scrub_url_from_error_text(self):
        """Test the URL and its path are removed from error messages."""
        text = scrub_url(f"failed: {TOKEN_URL} (url: /api/webhooks/123/SECRETTOKEN)", TOKEN_URL)

        assert "SECRETTOKEN" not in text
