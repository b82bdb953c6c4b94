"""Lifecycle fault signals raised by the host and the capability probe."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

REQUEST = "request"
REQUEST_EXCEPTION = "request.exception"
CONSOLE_ERROR = "console.error"
CONSOLE_EXCEPTION = "console.exception"
WORKER_MESSAGE_FAILED = "worker.message_failed"
WORKER_MESSAGE_HANDLED = "worker.message_handled"


class NamedCommand(Protocol):
    """Anything that identifies a CLI command by name."""

    name: str | None


@dataclass(frozen=True, slots=True)
class RequestReceived:
    """An inbound request started. Sub-requests carry ``is_primary=False``."""

    request: Any
    is_primary: bool = True


@dataclass(frozen=True, slots=True)
class RequestExceptionEvent:
    """Legacy shape of a failed request, exposing ``exception``."""

    exception: BaseException
    request: Any = None


@dataclass(frozen=True, slots=True)
class RequestErrorEvent:
    """Current shape of a failed request, exposing ``error``."""

    error: BaseException
    request: Any = None


@dataclass(frozen=True, slots=True)
class CommandExceptionEvent:
    """Legacy console failure signal, replaced by :class:`CommandErrorEvent`."""

    exception: BaseException
    exit_code: int = 1
    command: NamedCommand | None = None


@dataclass(frozen=True, slots=True)
class CommandErrorEvent:
    """A CLI command raised instead of returning an exit status."""

    error: BaseException
    exit_code: int = 1
    command: NamedCommand | None = None


@dataclass(frozen=True, slots=True)
class JobFailed:
    """A worker failed to handle a message.

    ``will_retry`` must already be final when the signal is dispatched: the
    reporting listener reads it once and never waits for a later decision.
    """

    error: BaseException
    will_retry: bool = False
    message: Any = None


@dataclass(frozen=True, slots=True)
class JobHandled:
    """A worker finished handling a message without error."""

    message: Any = None


@dataclass(frozen=True, slots=True)
class HostCapabilities:
    """Set of signal names the running host is able to raise."""

    signals: frozenset[str]

    @classmethod
    def from_names(cls, names: Iterable[str]) -> HostCapabilities:
        return cls(signals=frozenset(str(name) for name in names))

    @classmethod
    def probe(cls, host: object) -> HostCapabilities:
        """Ask a host object for ``supported_signals``; fall back to the current set."""
        supported = getattr(host, "supported_signals", None)
        if supported is None:
            return DEFAULT_CAPABILITIES
        if callable(supported):
            supported = supported()
        return cls.from_names(supported)

    def supports(self, name: str) -> bool:
        return name in self.signals


DEFAULT_CAPABILITIES = HostCapabilities.from_names(
    (
        REQUEST,
        REQUEST_EXCEPTION,
        CONSOLE_ERROR,
        WORKER_MESSAGE_FAILED,
        WORKER_MESSAGE_HANDLED,
    )
)

LEGACY_CAPABILITIES = HostCapabilities.from_names(
    (
        REQUEST,
        REQUEST_EXCEPTION,
        CONSOLE_EXCEPTION,
    )
)


__all__ = [
    "CONSOLE_ERROR",
    "CONSOLE_EXCEPTION",
    "DEFAULT_CAPABILITIES",
    "LEGACY_CAPABILITIES",
    "REQUEST",
    "REQUEST_EXCEPTION",
    "WORKER_MESSAGE_FAILED",
    "WORKER_MESSAGE_HANDLED",
    "CommandErrorEvent",
    "CommandExceptionEvent",
    "HostCapabilities",
    "JobFailed",
    "JobHandled",
    "NamedCommand",
    "RequestErrorEvent",
    "RequestExceptionEvent",
    "RequestReceived",
]
