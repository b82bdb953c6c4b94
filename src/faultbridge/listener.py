"""Fault listener: turns host lifecycle fault signals into error reports."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from faultbridge.client import TrackingClient
from faultbridge.errors import IntegrationMismatchError
from faultbridge.memory import (
    MemoryLimitSetter,
    is_out_of_memory,
    parse_memory_limit,
    set_memory_limit,
)
from faultbridge.observability.metrics import MetricsRecorder, get_metrics_recorder
from faultbridge.report import UNHANDLED_EXCEPTION_MIDDLEWARE, Report, SeverityReason
from faultbridge.request import RequestResolver
from faultbridge.signals import (
    CONSOLE_ERROR,
    CONSOLE_EXCEPTION,
    DEFAULT_CAPABILITIES,
    REQUEST,
    REQUEST_EXCEPTION,
    WORKER_MESSAGE_FAILED,
    WORKER_MESSAGE_HANDLED,
    CommandErrorEvent,
    CommandExceptionEvent,
    HostCapabilities,
    JobFailed,
    JobHandled,
    RequestErrorEvent,
    RequestExceptionEvent,
    RequestReceived,
)

logger = logging.getLogger(__name__)

HTTP_FALLBACK_TYPE = "HTTP"

REQUEST_PRIORITY = 256
EXCEPTION_PRIORITY = 128
# Retry decisions are made by listeners above this priority.
MESSAGE_FAILED_PRIORITY = 64
MESSAGE_HANDLED_PRIORITY = 128


@dataclass(frozen=True, slots=True)
class _CommandFailure:
    error: BaseException
    exit_code: int
    name: str | None


class FaultListener:
    """Reports faults raised during requests, CLI commands and worker jobs.

    Handlers are called by the host, one signal at a time. Apart from
    :class:`~faultbridge.errors.IntegrationMismatchError` for a signal of an
    unknown shape, nothing raised while building or submitting a report
    escapes a handler.
    """

    def __init__(
        self,
        client: TrackingClient,
        resolver: RequestResolver,
        auto_notify: bool | None = None,
        *,
        memory_limit_setter: MemoryLimitSetter = set_memory_limit,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self._client = client
        self._resolver = resolver
        self._auto_notify = (
            client.get_config().auto_notify if auto_notify is None else auto_notify
        )
        self._set_memory_limit = memory_limit_setter
        self._metrics = metrics

    @property
    def auto_notify(self) -> bool:
        return self._auto_notify

    def on_request(self, signal: RequestReceived) -> None:
        """Remember the primary request so later reports can describe it."""
        if not isinstance(signal, RequestReceived):
            raise IntegrationMismatchError("on_request", (RequestReceived,), signal)

        if not signal.is_primary:
            return

        self._client.set_fallback_type(HTTP_FALLBACK_TYPE)
        self._resolver.set(signal.request)

    def on_request_exception(self, signal: RequestExceptionEvent | RequestErrorEvent) -> None:
        error = self._resolve_request_error(signal)
        try:
            self._raise_memory_limit_after_oom(error)
        except Exception:
            logger.exception("Failed to apply out-of-memory remediation")
        self._send_notify(error, {}, source="request")

    def on_console_error(self, signal: CommandErrorEvent) -> None:
        self._report_command(signal)

    def on_console_exception(self, signal: CommandExceptionEvent) -> None:
        """Legacy console signal, registered only on hosts without ``console.error``."""
        self._report_command(signal)

    def on_worker_message_failed(self, signal: JobFailed) -> None:
        """Report a failed job and flush right away.

        Workers get no "handled" signal for a failed message, so this is the
        only point where the report can be delivered. ``signal.will_retry``
        must already be decided when this handler runs.
        """
        if not isinstance(signal, JobFailed):
            raise IntegrationMismatchError("on_worker_message_failed", (JobFailed,), signal)

        self._send_notify(
            signal.error,
            {"Messenger": {"willRetry": bool(signal.will_retry)}},
            source="worker",
        )
        self._flush()

    def on_worker_message_handled(self, signal: JobHandled) -> None:
        """Flush after every handled message.

        Workers are long running, so the flush a short-lived process gets at
        shutdown would never happen.
        """
        del signal
        self._flush()

    @classmethod
    def subscribed_events(
        cls,
        capabilities: HostCapabilities = DEFAULT_CAPABILITIES,
    ) -> MappingProxyType[str, tuple[str, int]]:
        """Map each signal this host can raise to ``(handler name, priority)``."""
        listeners: dict[str, tuple[str, int]] = {
            REQUEST: ("on_request", REQUEST_PRIORITY),
            REQUEST_EXCEPTION: ("on_request_exception", EXCEPTION_PRIORITY),
        }

        if capabilities.supports(CONSOLE_ERROR):
            listeners[CONSOLE_ERROR] = ("on_console_error", EXCEPTION_PRIORITY)
        elif capabilities.supports(CONSOLE_EXCEPTION):
            listeners[CONSOLE_EXCEPTION] = ("on_console_exception", EXCEPTION_PRIORITY)

        if capabilities.supports(WORKER_MESSAGE_FAILED):
            listeners[WORKER_MESSAGE_FAILED] = (
                "on_worker_message_failed",
                MESSAGE_FAILED_PRIORITY,
            )

        if capabilities.supports(WORKER_MESSAGE_HANDLED):
            listeners[WORKER_MESSAGE_HANDLED] = (
                "on_worker_message_handled",
                MESSAGE_HANDLED_PRIORITY,
            )

        return MappingProxyType(listeners)

    def _report_command(self, signal: CommandErrorEvent | CommandExceptionEvent) -> None:
        failure = self._resolve_command_failure(signal)
        meta: dict[str, Any] = {"status": failure.exit_code}
        if failure.name is not None:
            meta["name"] = failure.name
        self._send_notify(failure.error, {"command": meta}, source="command")

    def _raise_memory_limit_after_oom(self, error: BaseException) -> None:
        if not is_out_of_memory(error):
            return

        increase = self._client.get_memory_limit_increase()
        if increase is None:
            return

        current_limit = parse_memory_limit(str(error))
        if current_limit is None:
            logger.debug("Out-of-memory message has no limit; memory limit left unchanged")
            return

        new_limit = current_limit + increase
        try:
            adjusted = self._set_memory_limit(new_limit)
        except Exception:
            logger.exception("Failed to raise memory limit to %d", new_limit)
            return

        if adjusted:
            logger.info(
                "Raised memory limit after out-of-memory fault",
                extra={"memory_limit": new_limit, "previous_memory_limit": current_limit},
            )
            self._observe(
                "memory_limit_adjustment",
                lambda recorder: recorder.observe_memory_limit_adjustment(new_limit=new_limit),
            )

    def _send_notify(
        self,
        error: BaseException,
        metadata: dict[str, dict[str, Any]],
        *,
        source: str,
    ) -> None:
        if not self._auto_notify:
            return

        try:
            report = Report.from_exception(self._client.get_config(), error)
            report.set_unhandled(True)
            report.set_severity("error")
            report.set_severity_reason(
                SeverityReason(
                    type=UNHANDLED_EXCEPTION_MIDDLEWARE,
                    attributes={"framework": self._client.get_config().framework},
                )
            )
            report.set_metadata(metadata)
            self._client.notify(report)
        except Exception:
            logger.exception("Failed to report %s fault", source)
            return

        error_class = report.error_class
        self._observe(
            "report",
            lambda recorder: recorder.observe_report(source=source, error_class=error_class),
        )

    def _flush(self) -> None:
        try:
            self._client.flush()
        except Exception:
            logger.exception("Failed to flush buffered reports")

    def _metrics_recorder(self) -> MetricsRecorder:
        return get_metrics_recorder() if self._metrics is None else self._metrics

    def _observe(self, metric: str, record: Callable[[MetricsRecorder], None]) -> None:
        try:
            record(self._metrics_recorder())
        except Exception:
            logger.exception("Failed to record %s metric", metric)

    @staticmethod
    def _resolve_request_error(signal: object) -> BaseException:
        if isinstance(signal, RequestErrorEvent):
            return signal.error
        if isinstance(signal, RequestExceptionEvent):
            return signal.exception
        raise IntegrationMismatchError(
            "on_request_exception",
            (RequestExceptionEvent, RequestErrorEvent),
            signal,
        )

    @staticmethod
    def _resolve_command_failure(signal: object) -> _CommandFailure:
        if isinstance(signal, CommandErrorEvent):
            error = signal.error
        elif isinstance(signal, CommandExceptionEvent):
            error = signal.exception
        else:
            raise IntegrationMismatchError(
                "on_console_error",
                (CommandExceptionEvent, CommandErrorEvent),
                signal,
            )

        name = getattr(signal.command, "name", None) if signal.command is not None else None
        return _CommandFailure(
            error=error,
            exit_code=signal.exit_code,
            name=None if name is None else str(name),
        )


__all__ = [
    "EXCEPTION_PRIORITY",
    "HTTP_FALLBACK_TYPE",
    "MESSAGE_FAILED_PRIORITY",
    "MESSAGE_HANDLED_PRIORITY",
    "REQUEST_PRIORITY",
    "FaultListener",
]
