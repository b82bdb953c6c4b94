"""Worker helpers that raise job lifecycle signals."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeAlias

from faultbridge.dispatcher import EventDispatcher
from faultbridge.signals import WORKER_MESSAGE_FAILED, WORKER_MESSAGE_HANDLED, JobFailed, JobHandled

logger = logging.getLogger(__name__)

RetryPolicy: TypeAlias = Callable[[Any, BaseException], bool]


def retry_up_to(max_attempts: int, *, attempt_attr: str = "attempt") -> RetryPolicy:
    """Retry while ``message.<attempt_attr>`` (1-based, default 1) is below ``max_attempts``."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def policy(message: Any, error: BaseException) -> bool:
        del error
        attempt = getattr(message, attempt_attr, 1)
        try:
            return int(attempt) < max_attempts
        except (TypeError, ValueError):
            return False

    return policy


@contextmanager
def job_scope(
    dispatcher: EventDispatcher,
    message: Any = None,
    *,
    will_retry: bool | RetryPolicy = False,
) -> Iterator[None]:
    """Raise ``worker.message_handled`` or ``worker.message_failed`` around one job.

    The retry decision is made before the failure signal is dispatched.
    The job's exception is re-raised.
    """
    try:
        yield
    except Exception as exc:
        retry = will_retry(message, exc) if callable(will_retry) else bool(will_retry)
        dispatcher.dispatch(
            WORKER_MESSAGE_FAILED,
            JobFailed(error=exc, will_retry=retry, message=message),
        )
        raise
    dispatcher.dispatch(WORKER_MESSAGE_HANDLED, JobHandled(message=message))


@dataclass(slots=True)
class WorkerStats:
    handled: int = 0
    failed: int = 0


def consume(
    dispatcher: EventDispatcher,
    messages: Iterable[Any],
    handler: Callable[[Any], Any],
    *,
    will_retry: bool | RetryPolicy = False,
) -> WorkerStats:
    """Handle each message, keeping the loop alive when a handler raises."""
    stats = WorkerStats()
    for message in messages:
        try:
            with job_scope(dispatcher, message, will_retry=will_retry):
                handler(message)
        except Exception:
            stats.failed += 1
            logger.warning("Message handler failed", exc_info=True)
            continue
        stats.handled += 1
    return stats


__all__ = ["RetryPolicy", "WorkerStats", "consume", "job_scope", "retry_up_to"]
