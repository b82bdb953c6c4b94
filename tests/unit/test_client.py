"""Tests for the buffering tracking client."""

from __future__ import annotations

from types import SimpleNamespace

from faultbridge.client import Client
from faultbridge.config.models import ReportingSettings
from faultbridge.report import Report
from faultbridge.request import RequestResolver


class RecordingMetrics:
    def __init__(self) -> None:
        self.flushes: list[tuple[str, int]] = []

    def observe_report(self, *, source: str, error_class: str) -> None:
        del source, error_class

    def observe_flush(self, *, reason: str, reports: int) -> None:
        self.flushes.append((reason, reports))

    def observe_memory_limit_adjustment(self, *, new_limit: int) -> None:
        del new_limit


def _client(**settings) -> tuple[Client, list[list[Report]], RecordingMetrics]:
    batches: list[list[Report]] = []
    metrics = RecordingMetrics()
    config = ReportingSettings(**settings)
    client = Client(config, deliver=batches.append, metrics=metrics)
    return client, batches, metrics


def _report(client: Client, message: str = "boom") -> Report:
    return Report.from_exception(client.get_config(), RuntimeError(message))


def test_batched_reports_are_delivered_on_flush() -> None:
    client, batches, metrics = _client()

    assert client.notify(_report(client, "a")) is True
    assert client.notify(_report(client, "b")) is True
    assert batches == []
    assert client.pending == 2

    assert client.flush() == 2

    assert [[report.message for report in batch] for batch in batches] == [["a", "b"]]
    assert client.pending == 0
    assert metrics.flushes == [("flush", 2)]


def test_flush_with_empty_buffer_delivers_nothing() -> None:
    client, batches, metrics = _client()

    assert client.flush() == 0

    assert batches == []
    assert metrics.flushes == [("flush", 0)]


def test_batch_sending_disabled_delivers_immediately() -> None:
    client, batches, _ = _client(batch_sending=False)

    client.notify(_report(client))

    assert len(batches) == 1
    assert client.pending == 0


def test_fallback_type_applies_only_without_configured_type() -> None:
    client, _, _ = _client()
    client.set_fallback_type("HTTP")
    report = _report(client)

    client.notify(report)

    assert report.app_type == "HTTP"

    configured, _, _ = _client(app_type="worker")
    configured.set_fallback_type("HTTP")
    other = _report(configured)
    configured.notify(other)
    assert other.app_type == "worker"


def test_current_request_is_attached() -> None:
    resolver = RequestResolver()
    client = Client(ReportingSettings(), resolver=resolver, deliver=lambda reports: None)
    resolver.set(
        SimpleNamespace(
            method="get",
            path="/users/{id}",
            url="https://example.test/users/1",
            headers={"Authorization": "Bearer secret", "Accept": "application/json"},
        )
    )
    report = _report(client)

    client.notify(report)

    assert report.request == {
        "httpMethod": "GET",
        "url": "https://example.test/users/1",
        "route": "/users/{id}",
        "headers": {"authorization": "[FILTERED]", "accept": "application/json"},
    }
    assert report.context == "GET /users/{id}"


def test_callback_can_drop_report() -> None:
    client, batches, _ = _client()
    client.register_callback(lambda report: report.message != "ignore me")

    assert client.notify(_report(client, "ignore me")) is False
    assert client.notify(_report(client, "keep")) is True
    client.flush()

    assert [report.message for report in batches[0]] == ["keep"]


def test_release_stage_filter() -> None:
    client, _, _ = _client(release_stage="development", notify_release_stages=("production",))

    assert client.notify(_report(client)) is False
    assert client.pending == 0


def test_full_buffer_drops_oldest(caplog) -> None:
    client, batches, _ = _client(max_buffered_reports=2)

    for message in ("one", "two", "three"):
        client.notify(_report(client, message))
    client.flush()

    assert [report.message for report in batches[0]] == ["two", "three"]
    assert "Report buffer full" in caplog.text


def test_delivery_failure_is_logged_not_raised(caplog) -> None:
    def broken(reports: list[Report]) -> None:
        raise ConnectionError("network down")

    client = Client(ReportingSettings(), deliver=broken, metrics=RecordingMetrics())
    client.notify(_report(client))

    assert client.flush() == 1
    assert "Report delivery failed" in caplog.text


def test_close_flushes_remaining_reports() -> None:
    client, batches, metrics = _client()
    client.notify(_report(client))

    client.close()

    assert len(batches) == 1
    assert metrics.flushes == [("close", 1)]


def test_memory_limit_increase_comes_from_settings() -> None:
    client, _, _ = _client(memory_limit_increase=None)
    assert client.get_memory_limit_increase() is None

    client, _, _ = _client(memory_limit_increase=1024)
    assert client.get_memory_limit_increase() == 1024
