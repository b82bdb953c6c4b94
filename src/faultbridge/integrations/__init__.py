"""Glue raising lifecycle signals from HTTP apps, CLI commands and workers."""

from faultbridge.integrations.command import (
    Command,
    command_fault_scope,
    dispatch_command_failure,
    reporting_command,
)
from faultbridge.integrations.http import (
    create_aiohttp_fault_middleware,
    create_fastapi_fault_middleware,
    http_fault_scope,
)
from faultbridge.integrations.worker import (
    RetryPolicy,
    WorkerStats,
    consume,
    job_scope,
    retry_up_to,
)

__all__ = [
    "Command",
    "RetryPolicy",
    "WorkerStats",
    "command_fault_scope",
    "consume",
    "create_aiohttp_fault_middleware",
    "create_fastapi_fault_middleware",
    "dispatch_command_failure",
    "http_fault_scope",
    "job_scope",
    "reporting_command",
    "retry_up_to",
]
