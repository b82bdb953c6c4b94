"""Out-of-memory detection and process memory limit adjustment."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TypeAlias

logger = logging.getLogger(__name__)

OOM_PATTERN = re.compile(
    r"Allowed memory size of (\d+) bytes exhausted \(tried to allocate \d+ bytes\)"
)

MemoryLimitSetter: TypeAlias = Callable[[int], bool]


class OutOfMemoryError(MemoryError):
    """Fatal allocation failure raised by hosts that convert it into an error."""


class OutOfMemoryException(RuntimeError):
    """Name used for the same condition by older hosts."""


OOM_ERROR_TYPES: tuple[type[BaseException], ...] = (
    OutOfMemoryError,
    OutOfMemoryException,
    MemoryError,
)


def is_out_of_memory(error: BaseException) -> bool:
    return isinstance(error, OOM_ERROR_TYPES)


def parse_memory_limit(message: str) -> int | None:
    """Return the exhausted limit in bytes from an allocation failure message."""
    match = OOM_PATTERN.search(message)
    if match is None:
        return None
    return int(match.group(1))


def set_memory_limit(limit_bytes: int) -> bool:
    """Raise the soft address-space limit of this process.

    Only ever raises the limit: an unlimited soft limit, or one already at or
    above ``limit_bytes``, is left alone. Best effort: returns False and logs
    when the platform has no resource limits or the new soft limit is rejected.
    """
    try:
        import resource
    except ImportError:
        logger.warning(
            "Memory limit adjustment is not supported on this platform",
            extra={"memory_limit": limit_bytes},
        )
        return False

    soft, hard = resource.getrlimit(resource.RLIMIT_AS)
    if soft == resource.RLIM_INFINITY or soft >= limit_bytes:
        logger.warning(
            "Memory limit %d would not raise current limit %s; leaving it unchanged",
            limit_bytes,
            "unlimited" if soft == resource.RLIM_INFINITY else soft,
        )
        return False

    if hard != resource.RLIM_INFINITY and limit_bytes > hard:
        logger.warning(
            "Memory limit %d exceeds hard limit %d; leaving it unchanged",
            limit_bytes,
            hard,
        )
        return False

    try:
        resource.setrlimit(resource.RLIMIT_AS, (limit_bytes, hard))
    except (OSError, ValueError) as exc:
        logger.warning("Failed to raise memory limit to %d: %s", limit_bytes, exc)
        return False
    return True


__all__ = [
    "OOM_ERROR_TYPES",
    "OOM_PATTERN",
    "MemoryLimitSetter",
    "OutOfMemoryError",
    "OutOfMemoryException",
    "is_out_of_memory",
    "parse_memory_limit",
    "set_memory_limit",
]
