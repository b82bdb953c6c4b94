"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
from io import StringIO
from types import SimpleNamespace

from faultbridge.config import AppSettings
from faultbridge.observability.logging import (
    bootstrap_logging,
    bootstrap_logging_from_app_settings,
)
from faultbridge.request import RequestResolver


def test_json_logs_include_service_and_request_fields() -> None:
    stream = StringIO()
    resolver = RequestResolver()
    logger = logging.getLogger("tests.logging.json_fields")

    bootstrap_logging(
        service="orders-api",
        env="production",
        log_format="json",
        resolver=resolver,
        logger=logger,
        stream=stream,
    )

    with resolver.scope():
        resolver.set(SimpleNamespace(method="post", path="/orders"))
        logger.info("fault reported", extra={"error_class": "ValueError"})

    payload = json.loads(stream.getvalue().strip())

    assert payload["service"] == "orders-api"
    assert payload["env"] == "production"
    assert payload["level"] == "INFO"
    assert payload["message"] == "fault reported"
    assert payload["request_method"] == "POST"
    assert payload["request_route"] == "/orders"
    assert payload["error_class"] == "ValueError"
    assert payload["timestamp"].endswith("Z")


def test_json_logs_without_request_have_null_request_fields() -> None:
    stream = StringIO()
    logger = logging.getLogger("tests.logging.no_request")

    bootstrap_logging(service="worker", env="staging", logger=logger, stream=stream)
    logger.warning("idle")

    payload = json.loads(stream.getvalue().strip())

    assert payload["request_method"] is None
    assert payload["request_route"] is None


def test_exception_is_serialized() -> None:
    stream = StringIO()
    logger = logging.getLogger("tests.logging.exception")
    bootstrap_logging(service="svc", env="test", logger=logger, stream=stream)

    try:
        raise RuntimeError("delivery failed")
    except RuntimeError:
        logger.exception("Report delivery failed")

    payload = json.loads(stream.getvalue().strip())

    assert "RuntimeError: delivery failed" in payload["exception"]


def test_text_format_contains_context() -> None:
    stream = StringIO()
    logger = logging.getLogger("tests.logging.text")

    bootstrap_logging(
        service="svc",
        env="dev",
        log_format="text",
        level="debug",
        logger=logger,
        stream=stream,
    )
    logger.debug("hello")

    line = stream.getvalue().strip()
    assert "DEBUG" in line
    assert "service=svc env=dev request=- -" in line


def test_bootstrap_from_app_settings() -> None:
    stream = StringIO()
    logger = logging.getLogger("tests.logging.app_settings")
    settings = AppSettings.model_validate(
        {
            "service": {"name": "settings-service", "version": "1.0.0"},
            "logging": {"level": "WARNING", "format": "json"},
        }
    )

    bootstrap_logging_from_app_settings(settings, env="qa", logger=logger, stream=stream)
    logger.info("dropped")
    logger.error("kept")

    lines = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
    assert [line["message"] for line in lines] == ["kept"]
    assert lines[0]["service"] == "settings-service"
    assert lines[0]["env"] == "qa"
    assert logger.propagate is False
