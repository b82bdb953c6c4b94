"""Normalized error reports handed to the tracking client."""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from faultbridge.config.models import ReportingSettings

Severity = Literal["error", "warning", "info"]

UNHANDLED_EXCEPTION_MIDDLEWARE = "unhandledExceptionMiddleware"


@dataclass(frozen=True, slots=True)
class SeverityReason:
    """Why a report carries its severity."""

    type: str
    attributes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type}
        if self.attributes:
            payload["attributes"] = dict(self.attributes)
        return payload


@dataclass(frozen=True, slots=True)
class StackFrame:
    file: str
    line_number: int | None
    method: str

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "lineNumber": self.line_number, "method": self.method}


@dataclass(slots=True)
class Report:
    """One fault, ready for the tracking client."""

    error: BaseException
    config: ReportingSettings
    error_class: str
    message: str
    stacktrace: list[StackFrame] = field(default_factory=list)
    unhandled: bool = False
    severity: Severity = "warning"
    severity_reason: SeverityReason = field(
        default_factory=lambda: SeverityReason(type="handledException")
    )
    metadata: dict[str, dict[str, Any]] = field(default_factory=dict)
    app_type: str | None = None
    request: dict[str, Any] | None = None
    context: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @classmethod
    def from_exception(cls, config: ReportingSettings, error: BaseException) -> Report:
        return cls(
            error=error,
            config=config,
            error_class=type(error).__qualname__,
            message=_error_message(error),
            stacktrace=_extract_frames(error),
        )

    def set_unhandled(self, unhandled: bool) -> None:
        self.unhandled = unhandled

    def set_severity(self, severity: Severity) -> None:
        self.severity = severity

    def set_severity_reason(self, reason: SeverityReason) -> None:
        self.severity_reason = reason

    def set_metadata(self, metadata: dict[str, dict[str, Any]]) -> None:
        """Merge metadata groups into the report, key by key inside each group."""
        for group, values in metadata.items():
            self.metadata.setdefault(group, {}).update(values)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping; the transport decides the wire format."""
        payload: dict[str, Any] = {
            "exceptions": [
                {
                    "errorClass": self.error_class,
                    "message": self.message,
                    "stacktrace": [frame.to_dict() for frame in self.stacktrace],
                }
            ],
            "unhandled": self.unhandled,
            "severity": self.severity,
            "severityReason": self.severity_reason.to_dict(),
            "metaData": {group: dict(values) for group, values in self.metadata.items()},
            "app": {
                "releaseStage": self.config.release_stage,
                "version": self.config.app_version,
                "type": self.app_type,
            },
            "receivedAt": self.created_at.isoformat(timespec="milliseconds").replace(
                "+00:00", "Z"
            ),
        }
        if self.request is not None:
            payload["request"] = dict(self.request)
        if self.context is not None:
            payload["context"] = self.context
        return payload


def _error_message(error: BaseException) -> str:
    try:
        return str(error)
    except Exception:
        return f"<unprintable {type(error).__name__} object>"


def _extract_frames(error: BaseException) -> list[StackFrame]:
    if error.__traceback__ is None:
        return []
    summary = traceback.extract_tb(error.__traceback__)
    # innermost frame first
    return [
        StackFrame(file=frame.filename, line_number=frame.lineno, method=frame.name)
        for frame in reversed(summary)
    ]


__all__ = ["UNHANDLED_EXCEPTION_MIDDLEWARE", "Report", "Severity", "SeverityReason", "StackFrame"]
