"""Tracking client contract and a buffering implementation."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Protocol, TypeAlias

from faultbridge.config.models import ReportingSettings
from faultbridge.observability.metrics import MetricsRecorder, get_metrics_recorder
from faultbridge.report import Report
from faultbridge.request import RequestResolver

logger = logging.getLogger(__name__)

DeliveryFn: TypeAlias = Callable[[list[Report]], None]
ReportCallback: TypeAlias = Callable[[Report], bool | None]


class TrackingClient(Protocol):
    """What the fault listener needs from an error-tracking client."""

    def get_config(self) -> ReportingSettings: ...

    def set_fallback_type(self, fallback_type: str) -> None: ...

    def get_memory_limit_increase(self) -> int | None: ...

    def notify(self, report: Report) -> bool: ...

    def flush(self) -> int: ...


def log_delivery(reports: list[Report]) -> None:
    """Default delivery: write each report to the log."""
    for report in reports:
        logger.info(
            "Fault report %s: %s",
            report.error_class,
            report.message,
            extra={"report": report.to_dict()},
        )


class Client:
    """Buffers reports and hands them to ``deliver`` on flush.

    With ``batch_sending`` disabled every accepted report is delivered as
    soon as it is submitted. Delivery failures are logged and dropped.
    """

    def __init__(
        self,
        config: ReportingSettings,
        *,
        resolver: RequestResolver | None = None,
        deliver: DeliveryFn | None = None,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self._config = config
        self._resolver = RequestResolver() if resolver is None else resolver
        self._deliver = log_delivery if deliver is None else deliver
        self._metrics = metrics
        self._fallback_type: str | None = None
        self._callbacks: list[ReportCallback] = []
        self._buffer: deque[Report] = deque()
        self._lock = threading.Lock()

    @property
    def resolver(self) -> RequestResolver:
        return self._resolver

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    def get_config(self) -> ReportingSettings:
        return self._config

    def set_fallback_type(self, fallback_type: str) -> None:
        self._fallback_type = fallback_type

    def get_fallback_type(self) -> str | None:
        return self._fallback_type

    def get_memory_limit_increase(self) -> int | None:
        return self._config.memory_limit_increase

    def register_callback(self, callback: ReportCallback) -> None:
        """Run ``callback`` on each report before it is queued; ``False`` drops it."""
        self._callbacks.append(callback)

    def notify(self, report: Report) -> bool:
        """Enrich and queue a report. Returns False when the report was dropped."""
        if not self._config.should_notify():
            logger.debug(
                "Skipping report in release stage %s",
                self._config.release_stage,
            )
            return False

        report.app_type = self._config.app_type or self._fallback_type
        request = self._resolver.get()
        if request is not None:
            report.request = request.to_dict()
            if report.context is None and request.method and request.route:
                report.context = f"{request.method} {request.route}"

        for callback in self._callbacks:
            if callback(report) is False:
                logger.debug("Report %s dropped by callback", report.error_class)
                return False

        if not self._config.batch_sending:
            self._send([report])
            return True

        with self._lock:
            if len(self._buffer) >= self._config.max_buffered_reports:
                dropped = self._buffer.popleft()
                logger.warning(
                    "Report buffer full; dropping oldest report %s",
                    dropped.error_class,
                    extra={"max_buffered_reports": self._config.max_buffered_reports},
                )
            self._buffer.append(report)
        return True

    def flush(self) -> int:
        """Deliver every buffered report in one batch. Returns the batch size."""
        return self._flush(reason="flush")

    def close(self) -> None:
        self._flush(reason="close")

    def _flush(self, *, reason: str) -> int:
        with self._lock:
            reports = list(self._buffer)
            self._buffer.clear()
        if reports:
            self._send(reports)
        self._metrics_recorder().observe_flush(reason=reason, reports=len(reports))
        return len(reports)

    def _send(self, reports: list[Report]) -> None:
        try:
            self._deliver(reports)
        except Exception:
            logger.exception("Report delivery failed", extra={"reports": len(reports)})

    def _metrics_recorder(self) -> MetricsRecorder:
        return get_metrics_recorder() if self._metrics is None else self._metrics


__all__ = ["Client", "DeliveryFn", "ReportCallback", "TrackingClient", "log_delivery"]
