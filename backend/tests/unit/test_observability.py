"""Unit tests for structured logging, request IDs and health checks"""

import json
import logging
import sys
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from observability.health import (
    ComponentHealth,
    HealthStatus,
    check_database_health,
    check_storage_health,
    get_overall_health,
)
from observability.logging_config import JSONFormatter, RequestIDFilter
from observability.request_id import (
    get_request_id,
    normalize_request_id,
    request_id_var,
    set_request_id,
)


def _record(message="Submission approved", **extra):
    record = logging.LogRecord("publications.service", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestId:

    def test_default_outside_request(self):
        token = request_id_var.set(None)
        try:
            assert get_request_id() == "no-request-id"
        finally:
            request_id_var.reset(token)

    def test_set_and_get(self):
        token = request_id_var.set(None)
        try:
            set_request_id("req-123")
            assert get_request_id() == "req-123"
        finally:
            request_id_var.reset(token)

    def test_client_supplied_id_is_kept(self):
        assert normalize_request_id("abc-123") == "abc-123"

    def test_unusable_ids_are_replaced(self):
        for value in (None, "", "x" * 200, "bad\nid"):
            generated = normalize_request_id(value)
            assert generated != value
            assert len(generated) == 36


class TestJSONFormatter:

    def test_formats_one_json_object(self):
        record = _record(submission_id="42", status_code=200, duration_ms=1.5)
        RequestIDFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "publications.service"
        assert data["message"] == "Submission approved"
        assert data["submission_id"] == "42"
        assert data["status_code"] == 200
        assert data["duration_ms"] == 1.5
        assert "request_id" in data

    def test_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert data["error"] == "boom"
        assert "ValueError" in data["traceback"]


class TestHealth:

    def test_database_healthy(self, db_session):
        health = check_database_health(db_session)

        assert health.status == HealthStatus.HEALTHY
        assert health.latency_ms is not None

    def test_database_unhealthy(self):
        db = MagicMock()
        db.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))

        assert check_database_health(db).status == HealthStatus.UNHEALTHY

    def test_storage(self, storage):
        assert check_storage_health(storage).status == HealthStatus.HEALTHY

        broken = MagicMock()
        broken.health_check.return_value = False
        assert check_storage_health(broken).status == HealthStatus.UNHEALTHY

    def test_overall(self):
        healthy = ComponentHealth(HealthStatus.HEALTHY)
        degraded = ComponentHealth(HealthStatus.DEGRADED)
        unhealthy = ComponentHealth(HealthStatus.UNHEALTHY)

        assert get_overall_health({"a": healthy, "b": healthy}) == HealthStatus.HEALTHY
        assert get_overall_health({"a": healthy, "b": degraded}) == HealthStatus.DEGRADED
        assert get_overall_health({"a": degraded, "b": unhealthy}) == HealthStatus.UNHEALTHY
        assert unhealthy.to_dict() == {"status": "unhealthy", "message": None, "latency_ms": None}
