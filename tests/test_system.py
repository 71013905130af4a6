"""
Application-level tests.

Verifies:
- /health reports database status in the envelope
- unknown routes and methods render the error envelope
- CORS headers for configured origins
- lifecycle transition table and retry helper
"""

import pytest
from sqlalchemy.exc import OperationalError

from supercashier.services import lifecycle_service
from supercashier.services.concurrency import run_with_retry


class TestHealth:

    def test_healthy(self, client):
        resp = client.get("/health")
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["meta"] == {"status": 200, "message": "OK"}
        assert body["data"]["checks"]["database"]["status"] == "healthy"


class TestErrorEnvelope:

    def test_unknown_route(self, client):
        resp = client.get("/api/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"meta": {"status": 404, "message": "Not Found"}, "data": None}

    def test_wrong_method(self, client):
        resp = client.patch("/api/sales")
        assert resp.status_code == 405
        assert resp.get_json()["meta"]["message"] == "Method Not Allowed"

    def test_non_object_body(self, client, db_session):
        resp = client.post("/api/sales", json=[1, 2])
        assert resp.status_code == 422
        assert resp.get_json()["meta"]["message"] == "Invalid JSON payload"


class TestCors:

    def test_allowed_origin(self, app, client):
        origin = app.config["CORS_ALLOWED_ORIGINS"][0]
        resp = client.get("/health", headers={"Origin": origin})
        assert resp.headers["Access-Control-Allow-Origin"] == origin
        assert resp.headers["Access-Control-Allow-Credentials"] == "true"

    def test_unknown_origin(self, client):
        resp = client.get("/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestLifecycle:

    @pytest.mark.parametrize("src,dst,allowed", [
        ("draft", "paid", True),
        ("draft", "cancelled", True),
        ("paid", "cancelled", True),
        ("paid", "draft", False),
        ("cancelled", "draft", False),
        ("cancelled", "paid", False),
        ("cancelled", "cancelled", False),
    ])
    def test_transitions(self, src, dst, allowed):
        assert lifecycle_service.can_transition(src, dst) is allowed

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            lifecycle_service.can_transition("draft", "refunded")


class TestRetry:

    def test_retries_operational_errors(self, app):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE products", {}, Exception("database is locked"))
            return "ok"

        assert run_with_retry(flaky, backoff_base=0) == "ok"
        assert len(calls) == 3

    def test_gives_up(self, app):
        def always_locked():
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            run_with_retry(always_locked, attempts=2, backoff_base=0)

    def test_other_errors_propagate_immediately(self, app):
        calls = []

        def broken():
            calls.append(1)
            raise KeyError("x")

        with pytest.raises(KeyError):
            run_with_retry(broken, backoff_base=0)
        assert len(calls) == 1
