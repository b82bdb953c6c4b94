"""Tests for wiring reporting from settings."""

from __future__ import annotations

from faultbridge.bootstrap import bootstrap_fault_reporting, create_fault_listener
from faultbridge.config import AppSettings
from faultbridge.observability.metrics import NoopMetricsRecorder, get_metrics_recorder
from faultbridge.signals import (
    CONSOLE_ERROR,
    REQUEST,
    REQUEST_EXCEPTION,
    WORKER_MESSAGE_FAILED,
    WORKER_MESSAGE_HANDLED,
    HostCapabilities,
)


def test_default_wiring_subscribes_current_signals() -> None:
    reporting = create_fault_listener()

    assert set(reporting.subscriptions) == {
        REQUEST,
        REQUEST_EXCEPTION,
        CONSOLE_ERROR,
        WORKER_MESSAGE_FAILED,
        WORKER_MESSAGE_HANDLED,
    }
    assert reporting.listener.auto_notify is True
    assert reporting.dispatcher.listeners(REQUEST) == [reporting.listener.on_request]


def test_explicit_capabilities_limit_subscriptions() -> None:
    reporting = create_fault_listener(
        capabilities=HostCapabilities.from_names([REQUEST, REQUEST_EXCEPTION])
    )

    assert set(reporting.subscriptions) == {REQUEST, REQUEST_EXCEPTION}
    assert not reporting.dispatcher.has_listeners(WORKER_MESSAGE_HANDLED)


def test_bootstrap_from_app_settings_without_metrics() -> None:
    settings = AppSettings.model_validate(
        {
            "service": {"name": "svc", "version": "1"},
            "reporting": {"auto_notify": False},
        }
    )

    reporting = bootstrap_fault_reporting(settings, configure_logging=False)

    assert reporting.listener.auto_notify is False
    assert isinstance(get_metrics_recorder(), NoopMetricsRecorder)
