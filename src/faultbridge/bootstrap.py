"""Wiring: settings -> tracking client -> fault listener -> dispatcher."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TextIO

from faultbridge.client import Client, DeliveryFn
from faultbridge.config.models import AppSettings, ReportingSettings
from faultbridge.dispatcher import EventDispatcher, subscribe
from faultbridge.listener import FaultListener
from faultbridge.memory import MemoryLimitSetter, set_memory_limit
from faultbridge.observability.logging import bootstrap_logging_from_app_settings
from faultbridge.observability.metrics import MetricsRecorder, configure_prometheus_metrics
from faultbridge.request import RequestResolver
from faultbridge.signals import HostCapabilities

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FaultReporting:
    """Handle over the wired reporting components."""

    client: Client
    resolver: RequestResolver
    listener: FaultListener
    dispatcher: EventDispatcher
    subscriptions: Mapping[str, tuple[str, int]]

    def close(self) -> None:
        """Flush whatever is still buffered; call on process shutdown."""
        self.client.close()


def create_fault_listener(
    settings: ReportingSettings | None = None,
    *,
    dispatcher: EventDispatcher | None = None,
    capabilities: HostCapabilities | None = None,
    deliver: DeliveryFn | None = None,
    metrics: MetricsRecorder | None = None,
    memory_limit_setter: MemoryLimitSetter = set_memory_limit,
) -> FaultReporting:
    """Build a client and listener and subscribe the listener to ``dispatcher``.

    The registration table is computed once here from the host capabilities.
    """
    resolved_settings = ReportingSettings() if settings is None else settings
    resolved_dispatcher = EventDispatcher() if dispatcher is None else dispatcher
    resolver = RequestResolver()
    client = Client(resolved_settings, resolver=resolver, deliver=deliver, metrics=metrics)
    listener = FaultListener(
        client,
        resolver,
        resolved_settings.auto_notify,
        memory_limit_setter=memory_limit_setter,
        metrics=metrics,
    )
    subscriptions = subscribe(resolved_dispatcher, listener, capabilities)
    logger.info(
        "Fault reporting enabled",
        extra={
            "auto_notify": resolved_settings.auto_notify,
            "signals": sorted(subscriptions),
        },
    )
    return FaultReporting(
        client=client,
        resolver=resolver,
        listener=listener,
        dispatcher=resolved_dispatcher,
        subscriptions=subscriptions,
    )


def bootstrap_fault_reporting(
    app_settings: AppSettings,
    *,
    dispatcher: EventDispatcher | None = None,
    capabilities: HostCapabilities | None = None,
    deliver: DeliveryFn | None = None,
    configure_logging: bool = True,
    log_stream: TextIO | None = None,
) -> FaultReporting:
    """Configure logging and metrics from appsettings, then wire the listener."""
    metrics: MetricsRecorder | None = None
    if app_settings.metrics.enabled:
        metrics = configure_prometheus_metrics(prefix=app_settings.metrics.prefix)

    reporting = create_fault_listener(
        app_settings.reporting,
        dispatcher=dispatcher,
        capabilities=capabilities,
        deliver=deliver,
        metrics=metrics,
    )
    if configure_logging:
        bootstrap_logging_from_app_settings(
            app_settings,
            resolver=reporting.resolver,
            stream=log_stream,
        )
    return reporting


__all__ = ["FaultReporting", "bootstrap_fault_reporting", "create_fault_listener"]
