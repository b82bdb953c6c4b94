"""Structured logging bootstrap with request context fields."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from faultbridge.config.models import AppSettings
    from faultbridge.request import RequestResolver

_STANDARD_RECORD_KEYS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)
_RESERVED_FIELDS = frozenset({"service", "env", "request_method", "request_route"})


class JsonFormatter(logging.Formatter):
    """JSON formatter with service fields and the current request, when one is bound."""

    def __init__(
        self,
        *,
        service: str,
        env: str,
        resolver: RequestResolver | None = None,
    ) -> None:
        super().__init__()
        self._service = service
        self._env = env
        self._resolver = resolver

    def format(self, record: logging.LogRecord) -> str:
        method, route = _current_request(self._resolver)
        payload: dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._env,
            "request_method": method,
            "request_route": route,
        }

        payload.update(_extract_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=True)


class TextFormatter(logging.Formatter):
    """Plain text formatter carrying the same context as :class:`JsonFormatter`."""

    def __init__(
        self,
        *,
        service: str,
        env: str,
        resolver: RequestResolver | None = None,
    ) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._service = service
        self._env = env
        self._resolver = resolver

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        method, route = _current_request(self._resolver)
        return (
            f"{base} "
            f"service={self._service} env={self._env} "
            f"request={method or '-'} {route or '-'}"
        )


def bootstrap_logging(
    *,
    service: str,
    env: str | None = None,
    level: str = "INFO",
    log_format: str = "json",
    resolver: RequestResolver | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Configure a logger with standard formatting and request fields."""
    resolved_env = env if env is not None else os.getenv("FAULTBRIDGE_ENV", "development")
    target_logger = logger or logging.getLogger()

    if force:
        for handler in list(target_logger.handlers):
            target_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    formatter_cls = TextFormatter if log_format == "text" else JsonFormatter
    handler.setFormatter(formatter_cls(service=service, env=resolved_env, resolver=resolver))

    target_logger.addHandler(handler)
    target_logger.setLevel(level.upper())
    if target_logger is not logging.getLogger():
        target_logger.propagate = False
    return target_logger


def bootstrap_logging_from_app_settings(
    app_settings: AppSettings,
    *,
    env: str | None = None,
    resolver: RequestResolver | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Bootstrap logging using values from typed appsettings."""
    return bootstrap_logging(
        service=app_settings.service.name,
        env=env,
        level=app_settings.logging.level,
        log_format=app_settings.logging.format,
        resolver=resolver,
        logger=logger,
        stream=stream,
        force=force,
    )


def _current_request(resolver: RequestResolver | None) -> tuple[str | None, str | None]:
    if resolver is None:
        return None, None
    context = resolver.get()
    if context is None:
        return None, None
    return context.method, context.route


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_RECORD_KEYS or key in _RESERVED_FIELDS or key.startswith("_"):
            continue
        extras[key] = value
    return extras


def _format_timestamp(created: float) -> str:
    timestamp = datetime.fromtimestamp(created, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "JsonFormatter",
    "TextFormatter",
    "bootstrap_logging",
    "bootstrap_logging_from_app_settings",
]
