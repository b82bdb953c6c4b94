"""Typed configuration models with Pydantic validation."""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

DEFAULT_MEMORY_LIMIT_INCREASE = 5 * 1024 * 1024


class ServiceSettings(BaseModel):
    """Service identification."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Service name")
    version: str = Field(..., min_length=1, description="Service version")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    format: Literal["json", "text"] = Field(default="json", description="Log output format")


class MetricsSettings(BaseModel):
    """Metrics recorder configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False, description="Record Prometheus metrics")
    prefix: str = Field(default="faultbridge", min_length=1, description="Metric name prefix")


class ReportingSettings(BaseModel):
    """Error reporting behaviour shared by the listener and the tracking client."""

    model_config = ConfigDict(frozen=True)

    auto_notify: bool = Field(
        default=True,
        description="Report unhandled faults raised inside the host lifecycle",
    )
    memory_limit_increase: int | None = Field(
        default=DEFAULT_MEMORY_LIMIT_INCREASE,
        ge=0,
        description=(
            "Bytes added to the process memory limit after an out-of-memory fault. "
            "None disables the adjustment."
        ),
    )
    framework: str = Field(
        default="Python",
        min_length=1,
        description="Framework name attached to the severity reason of every report",
    )
    api_key: SecretStr | None = Field(default=None, min_length=1, description="Project API key")
    release_stage: str = Field(default="production", min_length=1, description="Release stage")
    notify_release_stages: tuple[str, ...] | None = Field(
        default=None,
        description="Release stages that deliver reports. None means every stage.",
    )
    app_version: str | None = Field(default=None, min_length=1, description="Application version")
    app_type: str | None = Field(
        default=None,
        min_length=1,
        description="Application type. The listener's fallback type applies when unset.",
    )
    batch_sending: bool = Field(
        default=True,
        description="Buffer reports until flush instead of delivering each one",
    )
    max_buffered_reports: int = Field(
        default=100,
        ge=1,
        description="Oldest buffered reports are dropped past this size",
    )

    @model_validator(mode="after")
    def validate_release_stage_filter(self) -> ReportingSettings:
        if self.notify_release_stages is not None and len(self.notify_release_stages) == 0:
            raise ValueError("notify_release_stages must be None or a non-empty list")
        return self

    def should_notify(self) -> bool:
        """Whether reports built in the current release stage are delivered."""
        if self.notify_release_stages is None:
            return True
        return self.release_stage in self.notify_release_stages

    @classmethod
    def from_env(cls, prefix: str = "FAULTBRIDGE_") -> ReportingSettings:
        """Build reporting settings from environment variables.

        Unset variables fall back to the class defaults. Setting
        ``<prefix>MEMORY_LIMIT_INCREASE`` to an empty string or ``none``
        disables the memory adjustment.
        """

        def env(name: str) -> str | None:
            return os.getenv(f"{prefix}{name}")

        def env_bool(name: str, default: bool) -> bool:
            value = env(name)
            if value is None:
                return default
            return value.strip().lower() in {"1", "true", "yes", "on"}

        values: dict[str, object] = {
            "auto_notify": env_bool("AUTO_NOTIFY", True),
            "batch_sending": env_bool("BATCH_SENDING", True),
        }

        raw_increase = env("MEMORY_LIMIT_INCREASE")
        if raw_increase is not None:
            cleaned = raw_increase.strip()
            if cleaned == "" or cleaned.lower() == "none":
                values["memory_limit_increase"] = None
            else:
                try:
                    values["memory_limit_increase"] = int(cleaned)
                except ValueError as exc:
                    raise ValueError(
                        f"{prefix}MEMORY_LIMIT_INCREASE must be an integer, got {raw_increase!r}"
                    ) from exc

        for field_name in ("framework", "api_key", "release_stage", "app_version", "app_type"):
            value = env(field_name.upper())
            if value:
                values[field_name] = value

        stages = env("NOTIFY_RELEASE_STAGES")
        if stages:
            values["notify_release_stages"] = tuple(
                stage.strip() for stage in stages.split(",") if stage.strip()
            )

        return cls.model_validate(values)


class AppSettings(BaseModel):
    """Root application settings."""

    model_config = ConfigDict(frozen=True)

    service: ServiceSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
