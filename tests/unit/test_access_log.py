"""
Unit tests for the access log.
"""

import json
import logging
import time

import pytest

from microserver.access_log import AccessLogger, RequestLog
from microserver.http import not_found, ok, parse_request


def make_entry(**overrides) -> RequestLog:
    fields = dict(
        request_id="a1b2c3d4",
        method="GET",
        path="/greeting",
        query="name=Ana",
        client_ip="127.0.0.1",
        status_code=200,
        content_length=9,
        duration_ms=1.234,
        timestamp="19/Oct/2026:10:00:00 +0000",
    )
    fields.update(overrides)
    return RequestLog(**fields)


class TestRequestLog:
    """Tests for RequestLog formatting."""

    def test_to_text(self):
        assert make_entry().to_text() == (
            '127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] '
            '"GET /greeting?name=Ana" 200 9 1.23ms'
        )

    def test_to_text_without_query(self):
        assert '"GET /hello"' in make_entry(path="/hello", query="").to_text()

    def test_to_text_without_method(self):
        assert '"- index.html"' in make_entry(method="", path="index.html", query="").to_text()

    def test_to_dict(self):
        data = make_entry().to_dict()

        assert data["request_id"] == "a1b2c3d4"
        assert data["status_code"] == 200
        assert data["duration_ms"] == 1.23


class TestAccessLogger:
    """Tests for AccessLogger."""

    def test_text_format(self, caplog):
        caplog.set_level(logging.INFO, logger="microserver.access")
        request = parse_request(b"GET /greeting?name=Ana HTTP/1.1\r\n\r\n")

        entry = AccessLogger().log(request, ok("Hola, Ana"), "10.0.0.1", time.time(), "abcd1234")

        assert entry.status_code == 200
        assert entry.content_length == 9
        assert entry.query == "name=Ana"
        assert '10.0.0.1 - - [' in caplog.text
        assert '"GET /greeting?name=Ana" 200 9' in caplog.text

    def test_json_format(self, caplog):
        caplog.set_level(logging.INFO, logger="microserver.access")
        request = parse_request("GET /mañana HTTP/1.1\r\n\r\n".encode("utf-8"))

        AccessLogger(log_format="json").log(request, not_found(), "127.0.0.1", time.time())

        record = json.loads(caplog.records[-1].getMessage())
        assert record["path"] == "/mañana"
        assert record["status_code"] == 404
        assert len(record["request_id"]) == 8

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            AccessLogger(log_format="xml")
