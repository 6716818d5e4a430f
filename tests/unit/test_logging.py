"""Tests for structured JSON logging."""

import json
import logging

from metric_catalog.common.logging import JSONFormatter, get_logger, setup_logging


def _record(msg, **extra):
    record = logging.LogRecord("metric_catalog.test", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record("metric created")))
        assert payload["message"] == "metric created"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "metric_catalog.test"

    def test_catalog_extras(self):
        record = _record("usage recorded", metric_id="m-1", org_id="org-1", actor="bob")
        payload = json.loads(JSONFormatter().format(record))
        assert payload["metric_id"] == "m-1"
        assert payload["org_id"] == "org-1"
        assert payload["actor"] == "bob"

    def test_absent_extras_omitted(self):
        payload = json.loads(JSONFormatter().format(_record("hello")))
        assert "metric_id" not in payload


class TestSetup:
    def test_get_logger_namespace(self):
        assert get_logger("usage.tracker").name == "metric_catalog.usage.tracker"

    def test_setup_installs_json_handler(self):
        setup_logging("DEBUG")
        logger = logging.getLogger("metric_catalog")
        assert logger.level == logging.DEBUG
        assert [type(h.formatter) for h in logger.handlers] == [JSONFormatter]
        setup_logging("INFO")
