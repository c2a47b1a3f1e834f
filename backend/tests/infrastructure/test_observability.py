"""Structured Logging: JSON formatter fields and handler setup.

Tests cover:
    - Base fields always present
    - Call-setup extras surfaced only when set
    - Exceptions serialized
    - setup_logging replaces its own handler instead of stacking
"""

import json
import logging
import sys

import pytest

from callsetup.infrastructure.observability import JSONFormatter, setup_logging


def _record(msg="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("callsetup.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_base_fields_present():
    payload = json.loads(JSONFormatter().format(_record()))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "callsetup.test"
    assert payload["message"] == "hello"
    assert "timestamp" in payload


def test_extras_surfaced_when_present():
    payload = json.loads(JSONFormatter().format(_record(
        call_id=7, library_version="7.0.0", peer_version="7.0.0", attempt=2,
    )))
    assert payload["call_id"] == 7
    assert payload["library_version"] == "7.0.0"
    assert payload["attempt"] == 2
    assert "error_code" not in payload


def test_exception_serialized():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()
    payload = json.loads(JSONFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


@pytest.fixture
def restore_root_logger():
    handlers = list(logging.root.handlers)
    level = logging.root.level
    yield
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)


def test_setup_logging_does_not_stack_handlers(restore_root_logger):
    setup_logging("DEBUG", "json")
    setup_logging("WARNING", "text")
    ours = [h for h in logging.root.handlers if h.get_name() == "callsetup"]
    assert len(ours) == 1
    assert not isinstance(ours[0].formatter, JSONFormatter)
    assert logging.root.level == logging.WARNING
