"""Request-scoped context attached to reports built while a request is running."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

_FILTERED = "[FILTERED]"
_SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "proxy-authorization", "set-cookie"})
_CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip")


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Facts about the current inbound request."""

    method: str | None = None
    route: str | None = None
    url: str | None = None
    client_ip: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Any) -> RequestContext:
        """Read a FastAPI/Starlette, aiohttp or plain request object."""
        if isinstance(request, RequestContext):
            return request
        headers = _coerce_headers(getattr(request, "headers", {}))
        return cls(
            method=_clean_method(getattr(request, "method", None)),
            route=_resolve_route(request),
            url=_clean_value(getattr(request, "url", None)),
            client_ip=_resolve_client_ip(request, headers),
            headers=_filter_headers(headers),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "httpMethod": self.method,
            "url": self.url,
            "route": self.route,
            "clientIp": self.client_ip,
            "headers": dict(self.headers),
        }
        return {key: value for key, value in payload.items() if value not in (None, {})}


class RequestResolver:
    """Holds the current request per execution context.

    Each thread and each asyncio task sees its own value, so one resolver can
    be shared by a server handling requests concurrently.
    """

    def __init__(self, name: str = "faultbridge_request") -> None:
        self._current: contextvars.ContextVar[RequestContext | None] = contextvars.ContextVar(
            name,
            default=None,
        )

    def set(self, request: Any) -> RequestContext:
        """Replace the current request context."""
        context = RequestContext.from_request(request)
        self._current.set(context)
        return context

    def get(self) -> RequestContext | None:
        return self._current.get()

    def clear(self) -> None:
        self._current.set(None)

    @contextmanager
    def scope(self) -> Iterator[None]:
        """Isolate request assignments made inside the block."""
        token = self._current.set(None)
        try:
            yield
        finally:
            self._current.reset(token)


def _resolve_route(request: Any) -> str | None:
    scope = getattr(request, "scope", None)
    if isinstance(scope, Mapping):
        route = scope.get("route")
        for candidate in (getattr(route, "path", None), scope.get("path")):
            resolved = _clean_value(candidate)
            if resolved is not None:
                return resolved

    match_info = getattr(request, "match_info", None)
    resource = getattr(getattr(match_info, "route", None), "resource", None)
    for candidate in (
        getattr(resource, "canonical", None),
        getattr(getattr(request, "url", None), "path", None),
        getattr(getattr(request, "rel_url", None), "path", None),
        getattr(request, "path", None),
    ):
        resolved = _clean_value(candidate)
        if resolved is not None:
            return resolved
    return None


def _resolve_client_ip(request: Any, headers: Mapping[str, str]) -> str | None:
    for header in _CLIENT_IP_HEADERS:
        value = _clean_value(headers.get(header))
        if value is not None:
            return value.split(",")[0].strip()

    client = getattr(request, "client", None)
    host = _clean_value(getattr(client, "host", None))
    if host is not None:
        return host
    return _clean_value(getattr(request, "remote", None))


def _coerce_headers(headers: object) -> dict[str, str]:
    if isinstance(headers, Mapping):
        return {str(key).lower(): str(value) for key, value in headers.items()}

    items = getattr(headers, "items", None)
    if callable(items):
        try:
            return {str(key).lower(): str(value) for key, value in items()}
        except Exception:
            return {}
    return {}


def _filter_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        key: _FILTERED if key in _SENSITIVE_HEADERS else value for key, value in headers.items()
    }


def _clean_method(method: object) -> str | None:
    value = _clean_value(method)
    return None if value is None else value.upper()


def _clean_value(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if text == "":
        return None
    return text


__all__ = ["RequestContext", "RequestResolver"]
