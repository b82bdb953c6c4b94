"""Shared fakes for fault reporting tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest

from faultbridge.config.models import ReportingSettings
from faultbridge.listener import FaultListener
from faultbridge.observability.metrics import reset_metrics_recorder
from faultbridge.report import Report
from faultbridge.request import RequestResolver


class RecordingClient:
    """Tracking client double that records calls in order."""

    def __init__(self, settings: ReportingSettings) -> None:
        self.settings = settings
        self.calls: list[tuple[str, Any]] = []
        self.fallback_type: str | None = None

    def get_config(self) -> ReportingSettings:
        return self.settings

    def set_fallback_type(self, fallback_type: str) -> None:
        self.fallback_type = fallback_type
        self.calls.append(("set_fallback_type", fallback_type))

    def get_memory_limit_increase(self) -> int | None:
        return self.settings.memory_limit_increase

    def notify(self, report: Report) -> bool:
        self.calls.append(("notify", report))
        return True

    def flush(self) -> int:
        self.calls.append(("flush", None))
        return 0

    @property
    def reports(self) -> list[Report]:
        return [payload for name, payload in self.calls if name == "notify"]

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class MemoryLimitRecorder:
    def __init__(self) -> None:
        self.limits: list[int] = []

    def __call__(self, limit_bytes: int) -> bool:
        self.limits.append(limit_bytes)
        return True


@pytest.fixture(autouse=True)
def _reset_metrics() -> Iterator[None]:
    yield
    reset_metrics_recorder()


@pytest.fixture
def resolver() -> RequestResolver:
    return RequestResolver()


@pytest.fixture
def memory_limits() -> MemoryLimitRecorder:
    return MemoryLimitRecorder()


@pytest.fixture
def make_listener(
    resolver: RequestResolver,
    memory_limits: MemoryLimitRecorder,
) -> Callable[..., tuple[FaultListener, RecordingClient]]:
    def factory(
        *,
        listener_auto_notify: bool | None = None,
        memory_limit_setter: Callable[[int], bool] | None = None,
        **settings: Any,
    ) -> tuple[FaultListener, RecordingClient]:
        client = RecordingClient(ReportingSettings(**settings))
        listener = FaultListener(
            client,
            resolver,
            listener_auto_notify,
            memory_limit_setter=(
                memory_limits if memory_limit_setter is None else memory_limit_setter
            ),
        )
        return listener, client

    return factory
