"""
Unit tests for health, metrics and logging setup.
"""

import json
import logging

import redis

from app.core.logging_config import CustomJsonFormatter


class FakeRedis:
    def __init__(self, error=None):
        self.error = error

    def ping(self):
        if self.error:
            raise self.error
        return True


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_detailed_healthy(self, client, monkeypatch):
        monkeypatch.setattr(redis.Redis, "from_url", lambda url, **kwargs: FakeRedis())

        response = client.get("/health/detailed")

        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["broker"]["status"] == "healthy"

    def test_detailed_broker_down(self, client, monkeypatch):
        error = redis.ConnectionError("Connection refused")
        monkeypatch.setattr(redis.Redis, "from_url", lambda url, **kwargs: FakeRedis(error))

        response = client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["broker"] == {
            "status": "unhealthy",
            "message": "Broker error: Connection refused",
        }


class TestMetrics:

    def test_counts(self, client, finalized_evaluation):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.json()["metrics"] == {
            "total_users": 1,
            "total_projects": 1,
            "total_evaluations": 1,
            "completed_evaluations": 1,
            "evaluation_results": 1,
        }

    def test_empty_database(self, client):
        metrics = client.get("/metrics").json()["metrics"]
        assert set(metrics.values()) == {0}


class TestJsonLogging:

    def test_standard_fields(self):
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(logger)s %(module)s %(funcName)s %(message)s')
        record = logging.LogRecord(
            name="app.services.entry_data",
            level=logging.WARNING,
            pathname=__file__,
            lineno=42,
            msg="Rejected zero denominator %s",
            args=("B",),
            exc_info=None,
        )

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "Rejected zero denominator B"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "app.services.entry_data"
        assert payload["line"] == 42
        assert payload["timestamp"].endswith("Z")

    def test_info_has_no_location(self):
        formatter = CustomJsonFormatter('%(message)s')
        record = logging.LogRecord("app", logging.INFO, __file__, 7, "ready", None, None)

        payload = json.loads(formatter.format(record))

        assert "line" not in payload
        assert payload["level"] == "INFO"
