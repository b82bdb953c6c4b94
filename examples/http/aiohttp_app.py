"""Minimal aiohttp app reporting unhandled request faults."""

from __future__ import annotations

from aiohttp import web

from faultbridge import ReportingSettings, create_fault_listener
from faultbridge.integrations import create_aiohttp_fault_middleware

reporting = create_fault_listener(ReportingSettings(framework="aiohttp"))


async def health(_: web.Request) -> web.Response:
    return web.json_response({"ok": True})


async def flush_reports(_: web.Application) -> None:
    reporting.close()


def build_app() -> web.Application:
    app = web.Application(
        middlewares=[
            create_aiohttp_fault_middleware(
                reporting.dispatcher,
                resolver=reporting.resolver,
                ignore=(web.HTTPException,),
            )
        ]
    )
    app.router.add_get("/health", health)
    app.on_shutdown.append(flush_reports)
    return app


if __name__ == "__main__":
    web.run_app(build_app(), host="0.0.0.0", port=8080)
