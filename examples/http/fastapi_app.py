"""Minimal FastAPI app reporting unhandled request faults."""

from __future__ import annotations

from fastapi import FastAPI

from faultbridge import ReportingSettings, create_fault_listener
from faultbridge.integrations import create_fastapi_fault_middleware

reporting = create_fault_listener(ReportingSettings(framework="FastAPI"))

app = FastAPI()
app.middleware("http")(
    create_fastapi_fault_middleware(reporting.dispatcher, resolver=reporting.resolver)
)
app.router.add_event_handler("shutdown", reporting.close)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/boom")
async def boom() -> dict[str, bool]:
    raise RuntimeError("boom")
