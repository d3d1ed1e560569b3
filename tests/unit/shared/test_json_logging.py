import json
import logging
import sys
from datetime import datetime, timezone

import pytest

from shared.logging import configure_logging
from shared.logging.json import CustomJsonFormatter, SensitiveDataFilter
from shared.logging.logger import is_configured


def _record(msg="hello", exc_info=None, **extra):
    record = logging.LogRecord("fleet.test", logging.INFO, __file__, 1, msg, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def formatter():
    return CustomJsonFormatter("fleet-metrics", "testing", ["password", "token"])


def test_formatter_emits_header_and_extras(formatter):
    payload = json.loads(formatter.format(_record(entity_count=3, hours=24)))

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "fleet.test"
    assert payload["service"] == "fleet-metrics"
    assert payload["environment"] == "testing"
    assert payload["entity_count"] == 3
    assert payload["hours"] == 24
    assert "pathname" not in payload
    assert "args" not in payload


def test_formatter_redacts_sensitive_keys(formatter):
    payload = json.loads(
        formatter.format(_record(db_password="hunter2", context={"api_token": "abc", "ok": 1}))
    )
    assert payload["db_password"] == "[REDACTED]"
    assert payload["context"] == {"api_token": "[REDACTED]", "ok": 1}


def test_formatter_serializes_exceptions(formatter):
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record("failed", exc_info=sys.exc_info())
    payload = json.loads(formatter.format(record))
    assert payload["exception"]["type"] == "RuntimeError"
    assert payload["exception"]["message"] == "boom"
    assert payload["exception"]["stack"]


def test_formatter_stringifies_unknown_types(formatter):
    ts = datetime(2026, 1, 1, tzinfo=timezone.utc)
    payload = json.loads(formatter.format(_record(since=ts)))
    assert payload["since"] == str(ts)


def test_sensitive_filter_is_case_insensitive():
    f = SensitiveDataFilter(["Secret"])
    assert f.filter({"CLIENT_SECRET": "x", "name": "y"}) == {
        "CLIENT_SECRET": "[REDACTED]",
        "name": "y",
    }


def test_configure_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("fleet-metrics", "testing", "debug", ["password"])
        configure_logging("fleet-metrics", "testing", "warning", ["password"])

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)
        assert root.level == logging.WARNING
        assert is_configured()
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)


def test_sensitive_filter_walks_lists():
    f = SensitiveDataFilter(["password"])
    data = {"hosts": [{"name": "a", "password": "x"}, "plain"]}
    assert f.filter(data) == {"hosts": [{"name": "a", "password": "[REDACTED]"}, "plain"]}


def test_configure_logging_quiets_driver_logger():
    root = logging.getLogger()
    driver = logging.getLogger("clickhouse_driver")
    saved_handlers, saved_level, saved_driver_level = root.handlers[:], root.level, driver.level
    try:
        configure_logging("fleet-metrics", "testing", "debug", [])
        assert driver.level == logging.WARNING
        configure_logging("fleet-metrics", "testing", "error", [])
        assert driver.level == logging.ERROR
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        driver.setLevel(saved_driver_level)
