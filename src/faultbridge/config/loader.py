"""Settings loader: base file, environment overlay, placeholders, validation."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from faultbridge.config.errors import ConfigFileNotFoundError, ConfigValidationError
from faultbridge.config.models import AppSettings
from faultbridge.config.placeholders import resolve_placeholders

DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_BASE_FILE = "appsettings.json"
ENV_VAR_NAME = "FAULTBRIDGE_ENV"
DEFAULT_ENV = "development"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated recursively with ``override``.

    Args:
        base: Base settings mapping.
        override: Mapping whose values win on conflict.

    Returns:
        New merged mapping; neither input is mutated.
    """
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def load_json_file(path: Path) -> dict[str, Any]:
    """Read a JSON settings file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed settings mapping.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
    """
    if not path.is_file():
        raise ConfigFileNotFoundError(str(path))
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def load_config(
    *,
    config_dir: Path | str | None = None,
    env: str | None = None,
    strict_placeholders: bool = True,
) -> AppSettings:
    """Load settings for the given environment.

    Sources, later ones winning:
    1. ``<config_dir>/appsettings.json``
    2. ``<config_dir>/appsettings.<env>.json`` when present
    3. ``${ENV_VAR}`` placeholders resolved from the process environment

    Args:
        config_dir: Directory holding the settings files. Defaults to "config".
        env: Environment name. Defaults to FAULTBRIDGE_ENV or "development".
        strict_placeholders: Raise for placeholders whose variable is unset.

    Returns:
        Validated, frozen application settings.

    Raises:
        ConfigFileNotFoundError: If the base file is missing.
        ConfigValidationError: If the merged settings are invalid.
        PlaceholderResolutionError: If a placeholder cannot be resolved in strict mode.
    """
    directory = DEFAULT_CONFIG_DIR if config_dir is None else Path(config_dir)
    environment = env if env is not None else os.environ.get(ENV_VAR_NAME, DEFAULT_ENV)

    config = load_json_file(directory / DEFAULT_BASE_FILE)

    env_path = directory / f"appsettings.{environment}.json"
    if env_path.is_file():
        config = deep_merge(config, load_json_file(env_path))

    config = resolve_placeholders(config, strict=strict_placeholders)

    try:
        return AppSettings.model_validate(config)
    except ValidationError as e:
        errors = [
            {"loc": " -> ".join(str(loc) for loc in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ConfigValidationError(errors) from e
