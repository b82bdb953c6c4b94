"""HTTP middleware that raises request lifecycle signals."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager, nullcontext
from typing import Any, TypeAlias

from faultbridge.dispatcher import EventDispatcher
from faultbridge.request import RequestResolver
from faultbridge.signals import REQUEST, REQUEST_EXCEPTION, RequestErrorEvent, RequestReceived

FastApiCallNext: TypeAlias = Callable[[Any], Awaitable[Any]]
AiohttpHandler: TypeAlias = Callable[[Any], Awaitable[Any]]


@contextmanager
def http_fault_scope(
    dispatcher: EventDispatcher,
    request: Any,
    *,
    is_primary: bool = True,
    resolver: RequestResolver | None = None,
    ignore: tuple[type[BaseException], ...] = (),
) -> Iterator[None]:
    """Announce ``request`` and report exceptions escaping the block.

    Exceptions are always re-raised so the framework's own error handling
    still runs. Passing ``resolver`` keeps a primary request's context from
    outliving the block; sub-requests leave the current context in place.
    """
    scope = resolver.scope() if resolver is not None and is_primary else nullcontext()
    with scope:
        dispatcher.dispatch(REQUEST, RequestReceived(request=request, is_primary=is_primary))
        try:
            yield
        except Exception as exc:
            if not isinstance(exc, ignore):
                dispatcher.dispatch(
                    REQUEST_EXCEPTION,
                    RequestErrorEvent(error=exc, request=request),
                )
            raise


def create_fastapi_fault_middleware(
    dispatcher: EventDispatcher,
    *,
    resolver: RequestResolver | None = None,
    ignore: tuple[type[BaseException], ...] = (),
) -> Callable[[Any, FastApiCallNext], Awaitable[Any]]:
    """Build an ``@app.middleware("http")`` function for FastAPI / Starlette."""

    async def middleware(request: Any, call_next: FastApiCallNext) -> Any:
        with http_fault_scope(dispatcher, request, resolver=resolver, ignore=ignore):
            return await call_next(request)

    return middleware


def create_aiohttp_fault_middleware(
    dispatcher: EventDispatcher,
    *,
    resolver: RequestResolver | None = None,
    ignore: tuple[type[BaseException], ...] = (),
    decorate: bool = True,
) -> Callable[[Any, AiohttpHandler], Awaitable[Any]]:
    """Build aiohttp middleware raising request signals around each handler."""

    async def middleware(request: Any, handler: AiohttpHandler) -> Any:
        with http_fault_scope(dispatcher, request, resolver=resolver, ignore=ignore):
            return await handler(request)

    if decorate:
        decorator = _load_aiohttp_middleware_decorator()
        if decorator is not None:
            return decorator(middleware)
    return middleware


def _load_aiohttp_middleware_decorator() -> Callable[[Any], Any] | None:
    try:
        from aiohttp import web
    except ImportError:
        return None
    return web.middleware


__all__ = [
    "create_aiohttp_fault_middleware",
    "create_fastapi_fault_middleware",
    "http_fault_scope",
]
