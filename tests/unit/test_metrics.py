"""Tests for metrics recorders."""

from __future__ import annotations

import pytest

from faultbridge.observability.metrics import (
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
    render_prometheus_metrics,
    set_metrics_recorder,
)
from faultbridge.signals import JobFailed

prometheus_client = pytest.importorskip("prometheus_client")


def test_prometheus_recorder_samples() -> None:
    registry = prometheus_client.CollectorRegistry()
    recorder = PrometheusMetricsRecorder(registry=registry)

    recorder.observe_report(source="worker", error_class="ValueError")
    recorder.observe_report(source="worker", error_class="KeyError")
    recorder.observe_flush(reason="flush", reports=3)
    recorder.observe_memory_limit_adjustment(new_limit=201326592)

    assert registry.get_sample_value(
        "faultbridge_reports_total",
        {"source": "worker"},
    ) == 2.0
    assert registry.get_sample_value("faultbridge_flushes_total", {"reason": "flush"}) == 1.0
    assert registry.get_sample_value(
        "faultbridge_flushed_reports_total", {"reason": "flush"}
    ) == 3.0
    assert registry.get_sample_value("faultbridge_memory_limit_bytes") == 201326592.0


def test_recorder_reuses_collectors_on_same_registry() -> None:
    registry = prometheus_client.CollectorRegistry()
    first = PrometheusMetricsRecorder(registry=registry, prefix="app")
    second = PrometheusMetricsRecorder(registry=registry, prefix="app")

    first.observe_report(source="request", error_class="KeyError")
    second.observe_report(source="request", error_class="KeyError")

    assert registry.get_sample_value(
        "app_reports_total",
        {"source": "request"},
    ) == 2.0


def test_configure_sets_default_and_reset() -> None:
    registry = prometheus_client.CollectorRegistry()

    recorder = configure_prometheus_metrics(registry=registry, prefix="svc")

    assert get_metrics_recorder() is recorder
    set_metrics_recorder(None)
    assert isinstance(get_metrics_recorder(), NoopMetricsRecorder)


def test_listener_reports_are_counted(make_listener) -> None:
    registry = prometheus_client.CollectorRegistry()
    configure_prometheus_metrics(registry=registry)
    listener, _ = make_listener()

    listener.on_worker_message_failed(JobFailed(error=TimeoutError("slow")))

    assert registry.get_sample_value(
        "faultbridge_reports_total",
        {"source": "worker"},
    ) == 1.0
    assert b"faultbridge_reports_total" in render_prometheus_metrics(registry=registry)


def test_error_class_is_not_a_label() -> None:
    registry = prometheus_client.CollectorRegistry()
    recorder = PrometheusMetricsRecorder(registry=registry)

    for index in range(5):
        recorder.observe_report(source="request", error_class=f"GeneratedError{index}")

    (metric,) = [m for m in registry.collect() if m.name == "faultbridge_reports"]
    totals = [sample for sample in metric.samples if sample.name.endswith("_total")]
    assert [sample.labels for sample in totals] == [{"source": "request"}]
    assert totals[0].value == 5.0
