"""Prometheus metrics primitives for fault reporting."""

from __future__ import annotations

import re
from typing import Any, Protocol

from faultbridge.errors import MissingDependencyError

_LABEL_NORMALIZER = re.compile(r"[^a-zA-Z0-9_]+")


def _import_prometheus_client() -> Any:
    try:
        import prometheus_client
    except ImportError as exc:  # pragma: no cover - depends on optional extras
        raise MissingDependencyError(
            "Prometheus metrics require optional dependency 'prometheus-client'. "
            "Install with: pip install 'faultbridge[metrics]'"
        ) from exc
    return prometheus_client


def _sanitize_label(value: str, *, default: str = "unknown") -> str:
    normalized = _LABEL_NORMALIZER.sub("_", value.strip().lower()).strip("_")
    return normalized or default


def _collector_or_create(registry: Any, name: str, factory: Any) -> Any:
    names_to_collectors = getattr(registry, "_names_to_collectors", None)
    if isinstance(names_to_collectors, dict):
        collector = names_to_collectors.get(name)
        if collector is not None:
            return collector
    return factory()


class MetricsRecorder(Protocol):
    """Observer contract for fault reporting metrics."""

    def observe_report(self, *, source: str, error_class: str) -> None:
        """Record a report submitted to the tracking client."""
        ...

    def observe_flush(self, *, reason: str, reports: int) -> None:
        """Record a flush and how many buffered reports it delivered."""
        ...

    def observe_memory_limit_adjustment(self, *, new_limit: int) -> None:
        """Record a memory limit raised after an out-of-memory fault."""
        ...


class NoopMetricsRecorder:
    """No-op recorder used when metrics are not configured."""

    def observe_report(self, *, source: str, error_class: str) -> None:
        del source, error_class

    def observe_flush(self, *, reason: str, reports: int) -> None:
        del reason, reports

    def observe_memory_limit_adjustment(self, *, new_limit: int) -> None:
        del new_limit


class PrometheusMetricsRecorder:
    """Prometheus-backed recorder with ``<prefix>_*`` naming."""

    def __init__(
        self,
        *,
        registry: Any | None = None,
        prefix: str = "faultbridge",
    ) -> None:
        prometheus_client = _import_prometheus_client()
        self._registry = prometheus_client.REGISTRY if registry is None else registry
        self._prefix = _sanitize_label(prefix, default="faultbridge")
        self._reports = _collector_or_create(
            self._registry,
            f"{self._prefix}_reports_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_reports_total",
                "Fault reports submitted to the tracking client.",
                labelnames=("source",),
                registry=self._registry,
            ),
        )
        self._flushes = _collector_or_create(
            self._registry,
            f"{self._prefix}_flushes_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_flushes_total",
                "Explicit flushes of buffered reports.",
                labelnames=("reason",),
                registry=self._registry,
            ),
        )
        self._flushed_reports = _collector_or_create(
            self._registry,
            f"{self._prefix}_flushed_reports_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_flushed_reports_total",
                "Reports handed to delivery by explicit flushes.",
                labelnames=("reason",),
                registry=self._registry,
            ),
        )
        self._memory_limit = _collector_or_create(
            self._registry,
            f"{self._prefix}_memory_limit_bytes",
            lambda: prometheus_client.Gauge(
                f"{self._prefix}_memory_limit_bytes",
                "Memory limit applied after the last out-of-memory fault.",
                registry=self._registry,
            ),
        )

    def observe_report(self, *, source: str, error_class: str) -> None:
        # error classes are unbounded; they stay out of the label set
        del error_class
        self._reports.labels(source=_sanitize_label(source)).inc()

    def observe_flush(self, *, reason: str, reports: int) -> None:
        reason_label = _sanitize_label(reason)
        self._flushes.labels(reason=reason_label).inc()
        self._flushed_reports.labels(reason=reason_label).inc(max(0, reports))

    def observe_memory_limit_adjustment(self, *, new_limit: int) -> None:
        self._memory_limit.set(max(0.0, float(new_limit)))


_NOOP_RECORDER = NoopMetricsRecorder()
_DEFAULT_RECORDER: MetricsRecorder = _NOOP_RECORDER


def get_metrics_recorder() -> MetricsRecorder:
    """Return the process-level metrics recorder."""
    return _DEFAULT_RECORDER


def set_metrics_recorder(recorder: MetricsRecorder | None) -> MetricsRecorder:
    """Set process-level recorder. `None` switches back to no-op."""
    global _DEFAULT_RECORDER
    _DEFAULT_RECORDER = _NOOP_RECORDER if recorder is None else recorder
    return _DEFAULT_RECORDER


def reset_metrics_recorder() -> None:
    set_metrics_recorder(None)


def configure_prometheus_metrics(
    *,
    registry: Any | None = None,
    prefix: str = "faultbridge",
    set_default: bool = True,
) -> PrometheusMetricsRecorder:
    """Build a Prometheus recorder and optionally set it as default."""
    recorder = PrometheusMetricsRecorder(registry=registry, prefix=prefix)
    if set_default:
        set_metrics_recorder(recorder)
    return recorder


def render_prometheus_metrics(*, registry: Any | None = None) -> bytes:
    """Render current Prometheus metrics in exposition text format."""
    prometheus_client = _import_prometheus_client()
    resolved_registry = prometheus_client.REGISTRY if registry is None else registry
    return bytes(prometheus_client.generate_latest(resolved_registry))


__all__ = [
    "MetricsRecorder",
    "NoopMetricsRecorder",
    "PrometheusMetricsRecorder",
    "configure_prometheus_metrics",
    "get_metrics_recorder",
    "render_prometheus_metrics",
    "reset_metrics_recorder",
    "set_metrics_recorder",
]
