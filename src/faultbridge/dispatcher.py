"""In-process lifecycle signal dispatcher with listener priorities."""

from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from faultbridge.signals import DEFAULT_CAPABILITIES, HostCapabilities

logger = logging.getLogger(__name__)

SignalListener: TypeAlias = Callable[[Any], None]


@dataclass(frozen=True, slots=True)
class _Registration:
    priority: int
    sequence: int
    callback: SignalListener


@dataclass(slots=True)
class EventDispatcher:
    """Calls listeners for a signal name, highest priority first.

    Listeners sharing a priority run in registration order. Exceptions from a
    listener propagate to the caller of :meth:`dispatch`.
    """

    capabilities: HostCapabilities = DEFAULT_CAPABILITIES
    _listeners: dict[str, list[_Registration]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _sequence: itertools.count = field(default_factory=itertools.count)

    @property
    def supported_signals(self) -> frozenset[str]:
        return self.capabilities.signals

    def add_listener(self, name: str, callback: SignalListener, priority: int = 0) -> None:
        registrations = self._listeners[name]
        registrations.append(
            _Registration(priority=priority, sequence=next(self._sequence), callback=callback)
        )
        registrations.sort(key=lambda item: (-item.priority, item.sequence))

    def remove_listener(self, name: str, callback: SignalListener) -> None:
        self._listeners[name] = [
            item for item in self._listeners.get(name, []) if item.callback != callback
        ]

    def listeners(self, name: str) -> list[SignalListener]:
        return [item.callback for item in self._listeners.get(name, [])]

    def has_listeners(self, name: str) -> bool:
        return bool(self._listeners.get(name))

    def dispatch(self, name: str, signal: Any) -> Any:
        for callback in self.listeners(name):
            callback(signal)
        return signal


def subscribe(
    dispatcher: EventDispatcher,
    subscriber: Any,
    capabilities: HostCapabilities | None = None,
) -> dict[str, tuple[str, int]]:
    """Register ``subscriber``'s handlers from its ``subscribed_events`` table.

    Capabilities are probed from the dispatcher when not given. Returns the
    table that was applied.
    """
    resolved = HostCapabilities.probe(dispatcher) if capabilities is None else capabilities
    table = dict(subscriber.subscribed_events(resolved))
    for name, (handler_name, priority) in table.items():
        dispatcher.add_listener(name, getattr(subscriber, handler_name), priority)
        logger.debug(
            "Subscribed %s.%s to %s",
            type(subscriber).__name__,
            handler_name,
            name,
            extra={"priority": priority},
        )
    return table


__all__ = ["EventDispatcher", "SignalListener", "subscribe"]
