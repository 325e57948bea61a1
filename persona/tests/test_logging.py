"""
Tests for logging configuration.
"""

import json
import logging

import pytest
from pythonjsonlogger.json import JsonFormatter

from persona.logging_config import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_format_by_default(monkeypatch):
    monkeypatch.delenv("PERSONA_LOG_FORMAT", raising=False)
    monkeypatch.setenv("PERSONA_LOG_LEVEL", "debug")

    setup_logging()

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


def test_text_format_and_explicit_level():
    setup_logging(level="WARNING", fmt="text")

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert not isinstance(root.handlers[0].formatter, JsonFormatter)


def test_unknown_level_falls_back_to_info():
    setup_logging(level="LOUD", fmt="text")

    assert logging.getLogger().level == logging.INFO


def test_get_logger_carries_trace_id():
    assert get_logger("persona.test", trace_id="7").extra == {"trace_id": "7"}
    assert get_logger("persona.test").extra == {"trace_id": "N/A"}


def test_json_record_fields():
    setup_logging(level="INFO", fmt="json")
    handler = logging.getLogger().handlers[0]
    record = logging.LogRecord("persona.processor", logging.INFO, __file__, 1, "Interaction accepted", None, None)
    record.trace_id = "7"

    data = json.loads(handler.formatter.format(record))

    assert data["message"] == "Interaction accepted"
    assert data["logger"] == "persona.processor"
    assert data["level"] == "INFO"
    assert data["trace_id"] == "7"
    assert "timestamp" in data
