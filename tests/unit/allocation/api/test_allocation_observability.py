import json
import logging

from fastapi.testclient import TestClient

from src.api.main import app
from src.api.observability import JsonFormatter, correlation_id_var, trace_id_from_traceparent


def test_health_endpoints_available():
    client = TestClient(app)
    health = client.get("/health")
    live = client.get("/health/live")
    ready = client.get("/health/ready")

    assert health.status_code == 200
    assert live.status_code == 200
    assert ready.status_code == 200
    assert health.json() == {"status": "ok"}
    assert live.json() == {"status": "live"}
    assert ready.json() == {"status": "ready"}


def test_app_lifespan_builds_engine_config():
    with TestClient(app) as client:
        assert client.get("/health/ready").status_code == 200


def test_correlation_headers_are_exposed():
    client = TestClient(app)
    response = client.get(
        "/allocation/risk-profiles", headers={"X-Correlation-Id": "corr_alloc_1"}
    )
    assert response.status_code == 200
    assert response.headers.get("X-Correlation-Id") == "corr_alloc_1"
    assert response.headers.get("X-Request-Id")
    assert response.headers.get("X-Trace-Id")


def test_generated_correlation_id_when_header_missing():
    client = TestClient(app)
    response = client.get("/health")
    assert response.headers["X-Correlation-Id"].startswith("corr_")
    assert response.headers["X-Request-Id"].startswith("req_")


def test_metrics_endpoint_available():
    client = TestClient(app)
    client.get("/allocation/risk-profiles")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_requests_total" in response.text or "http_request_duration" in response.text


def test_traceparent_header_propagates_trace_id():
    client = TestClient(app)
    upstream_trace_id = "1234567890abcdef1234567890abcdef"
    response = client.get(
        "/allocation/risk-profiles",
        headers={"traceparent": f"00-{upstream_trace_id}-0000000000000001-01"},
    )
    assert response.status_code == 200
    assert response.headers.get("X-Trace-Id") == upstream_trace_id
    assert response.headers.get("traceparent", "").startswith(f"00-{upstream_trace_id}-")


def test_malformed_traceparent_is_ignored():
    assert trace_id_from_traceparent("garbage") is None
    assert trace_id_from_traceparent("00-short-01-01") is None


def test_json_formatter_includes_context_and_extra_fields(monkeypatch):
    monkeypatch.setenv("SERVICE_NAME", "allocation-test")
    record = logging.LogRecord(
        name="src.core.allocation.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Generated allocation plan. plan_id=%s",
        args=("plan_abc",),
        exc_info=None,
    )
    record.extra_fields = {"allocations": 2}
    token = correlation_id_var.set("corr_fmt")
    try:
        payload = json.loads(JsonFormatter().format(record))
    finally:
        correlation_id_var.reset(token)

    assert payload["service"] == "allocation-test"
    assert payload["message"] == "Generated allocation plan. plan_id=plan_abc"
    assert payload["correlation_id"] == "corr_fmt"
    assert payload["allocations"] == 2
    assert "request_id" not in payload
