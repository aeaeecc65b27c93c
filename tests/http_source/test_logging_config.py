"""Tests for log handler setup and secret masking."""

from __future__ import annotations

import io
import json
import logging

import pytest

from ImageSources.HttpSource.logging_config import (
    LOGGER_NAME,
    JSONFormatter,
    mask_sensitive_data,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.setLevel(level)


def test_mask_sensitive_data():
    masked = mask_sensitive_data(
        {"Authorization": "Basic abc", "secret": "s3cret", "username": "reader", "token": None}
    )
    assert masked == {
        "Authorization": "***masked***",
        "secret": "***masked***",
        "username": "reader",
        "token": None,
    }


def test_json_formatter_merges_extra_fields():
    record = logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 1, "HEAD %s", ("u",), None)
    record.extra_fields = {"uri": "https://example.org/a", "secret": "s3cret"}
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "HEAD u"
    assert payload["level"] == "INFO"
    assert payload["logger"] == LOGGER_NAME
    assert payload["uri"] == "https://example.org/a"
    assert payload["secret"] == "***masked***"
    assert payload["timestamp"].endswith("Z")


def test_setup_logging_plain_output():
    stream = io.StringIO()
    logger = setup_logging("DEBUG", stream=stream)
    logging.getLogger(f"{LOGGER_NAME}.streams").debug("HEAD %s returned %s", "u", 404)
    assert logger.level == logging.DEBUG
    assert stream.getvalue() == "DEBUG: HEAD u returned 404\n"


def test_setup_logging_json_output():
    stream = io.StringIO()
    setup_logging("info", json_output=True, stream=stream)
    logging.getLogger(f"{LOGGER_NAME}.lookup").info("Resolved %s", "a")
    logging.getLogger(f"{LOGGER_NAME}.lookup").debug("hidden")
    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == "Resolved a"


def test_setup_logging_replaces_managed_handler():
    first, second = io.StringIO(), io.StringIO()
    setup_logging("INFO", stream=first)
    setup_logging("INFO", stream=second)
    managed = [
        handler
        for handler in logging.getLogger(LOGGER_NAME).handlers
        if getattr(handler, "_httpsource_managed", False)
    ]
    assert len(managed) == 1
    logging.getLogger(LOGGER_NAME).warning("once")
    assert first.getvalue() == ""
    assert second.getvalue() == "WARNING: once\n"
