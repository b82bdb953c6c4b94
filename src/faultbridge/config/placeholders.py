"""``${ENV_VAR}`` placeholder resolution for settings files."""

from __future__ import annotations

import os
import re
from typing import Any

from faultbridge.config.errors import PlaceholderResolutionError

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]+)\}")


def resolve_placeholders(
    data: dict[str, Any],
    *,
    strict: bool = True,
    _path: str = "",
) -> dict[str, Any]:
    """Return a copy of ``data`` with ``${VAR}`` references replaced from the environment.

    Args:
        data: Settings mapping to process.
        strict: If True, raise for placeholders whose variable is unset.
        _path: Dotted location of ``data``, used in error messages.

    Returns:
        New mapping with placeholders resolved; nested dicts and lists are copied.

    Raises:
        PlaceholderResolutionError: If strict=True and a variable is not set.
    """
    return {
        key: _resolve_node(value, f"{_path}.{key}" if _path else key, strict)
        for key, value in data.items()
    }


def _resolve_node(value: Any, path: str, strict: bool) -> Any:
    if isinstance(value, dict):
        return resolve_placeholders(value, strict=strict, _path=path)
    if isinstance(value, list):
        return [_resolve_node(item, f"{path}[{i}]", strict) for i, item in enumerate(value)]
    if not isinstance(value, str):
        return value

    def replace_match(match: re.Match[str]) -> str:
        env_var = match.group(1)
        env_value = os.environ.get(env_var)
        if env_value is not None:
            return env_value
        if strict:
            raise PlaceholderResolutionError(f"${{{env_var}}}", path)
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace_match, value)
