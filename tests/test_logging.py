"""Logging formatter and request-context filter tests."""

import json
import logging

from flask import g

from offline_router.middleware.logging_config import (
    JSONFormatter,
    ReadableFormatter,
    RequestContextFilter,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord("offline_router.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_extra_fields_are_emitted(self):
        out = json.loads(JSONFormatter().format(_record(cache_name="app-api-v2", source="cache", status=200)))
        assert out["message"] == "hello"
        assert out["level"] == "INFO"
        assert out["cache_name"] == "app-api-v2"
        assert out["source"] == "cache"
        assert out["status"] == 200

    def test_unset_fields_are_omitted(self):
        out = json.loads(JSONFormatter().format(_record()))
        assert "route" not in out
        assert "request_id" not in out


class TestReadableFormatter:

    def test_tags_and_duration(self):
        line = ReadableFormatter().format(_record(source="offline", cache_name="app-static-v2",
                                                  duration_ms=12.4, request_id="abc"))
        assert "#abc" in line
        assert "<offline> <app-static-v2>" in line
        assert line.endswith("[12ms]")


class TestRequestContextFilter:

    def test_outside_request_leaves_record_alone(self):
        record = _record()
        assert RequestContextFilter().filter(record) is True
        assert getattr(record, "request_id", None) is None

    def test_inside_request_stamps_id_and_route(self, app):
        with app.test_request_context("/events"):
            g.request_id = "r-1"
            g.route = "navigation"
            record = _record()
            RequestContextFilter().filter(record)
        assert record.request_id == "r-1"
        assert record.route == "navigation"

    def test_explicit_values_win(self, app):
        with app.test_request_context("/"):
            g.request_id = "r-1"
            record = _record(request_id="explicit")
            RequestContextFilter().filter(record)
        assert record.request_id == "explicit"
