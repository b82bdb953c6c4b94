"""CLI command wrappers that raise console fault signals."""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from faultbridge.dispatcher import EventDispatcher
from faultbridge.signals import (
    CONSOLE_ERROR,
    CONSOLE_EXCEPTION,
    CommandErrorEvent,
    CommandExceptionEvent,
    HostCapabilities,
    NamedCommand,
)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True, slots=True)
class Command:
    name: str | None = None


def dispatch_command_failure(
    dispatcher: EventDispatcher,
    error: BaseException,
    *,
    command: NamedCommand | str | None = None,
    exit_code: int = 1,
) -> None:
    """Raise the console failure signal this dispatcher's host supports."""
    resolved = Command(name=command) if isinstance(command, str) else command
    capabilities = HostCapabilities.probe(dispatcher)
    if capabilities.supports(CONSOLE_ERROR):
        dispatcher.dispatch(
            CONSOLE_ERROR,
            CommandErrorEvent(error=error, exit_code=exit_code, command=resolved),
        )
    elif capabilities.supports(CONSOLE_EXCEPTION):
        dispatcher.dispatch(
            CONSOLE_EXCEPTION,
            CommandExceptionEvent(exception=error, exit_code=exit_code, command=resolved),
        )


@contextmanager
def command_fault_scope(
    dispatcher: EventDispatcher,
    command: NamedCommand | str | None = None,
    *,
    exit_code: int = 1,
) -> Iterator[None]:
    """Report an exception escaping a command body, then re-raise it.

    ``SystemExit`` and ``KeyboardInterrupt`` are not faults and pass through.
    """
    try:
        yield
    except Exception as exc:
        dispatch_command_failure(dispatcher, exc, command=command, exit_code=exit_code)
        raise


def reporting_command(
    dispatcher: EventDispatcher,
    name: str | None = None,
    *,
    exit_code: int = 1,
) -> Callable[[F], F]:
    """Decorate a command function; ``name`` defaults to the function name."""

    def decorator(func: F) -> F:
        command = Command(name=name or func.__name__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with command_fault_scope(dispatcher, command, exit_code=exit_code):
                return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["Command", "command_fault_scope", "dispatch_command_failure", "reporting_command"]
