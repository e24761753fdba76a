"""Test suite for correlation id propagation."""

import logging

from menechat.observability.correlation import (
    CorrelationIdFilter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


def test_set_generates_id_when_missing():
    correlation_id = set_correlation_id()
    try:
        assert correlation_id
        assert get_correlation_id() == correlation_id
    finally:
        clear_correlation_id()
    assert get_correlation_id() == ""


def test_filter_stamps_records():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    set_correlation_id("abc-123")
    try:
        assert CorrelationIdFilter().filter(record) is True
    finally:
        clear_correlation_id()
    assert record.correlation_id == "abc-123"

    other = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    CorrelationIdFilter().filter(other)
    assert other.correlation_id == "-"


def test_middleware_echoes_header(client):
    response = client.get("/api/health", headers={"X-Correlation-ID": "req-42"})

    assert response.headers["X-Correlation-ID"] == "req-42"


def test_middleware_generates_header(client):
    response = client.get("/api/health")

    assert response.headers.get("X-Correlation-ID")
