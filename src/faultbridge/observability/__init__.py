"""Logging and metrics helpers."""

from faultbridge.observability.logging import (
    JsonFormatter,
    TextFormatter,
    bootstrap_logging,
    bootstrap_logging_from_app_settings,
)
from faultbridge.observability.metrics import (
    MetricsRecorder,
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
    render_prometheus_metrics,
    reset_metrics_recorder,
    set_metrics_recorder,
)

__all__ = [
    "JsonFormatter",
    "MetricsRecorder",
    "NoopMetricsRecorder",
    "PrometheusMetricsRecorder",
    "TextFormatter",
    "bootstrap_logging",
    "bootstrap_logging_from_app_settings",
    "configure_prometheus_metrics",
    "get_metrics_recorder",
    "render_prometheus_metrics",
    "reset_metrics_recorder",
    "set_metrics_recorder",
]
