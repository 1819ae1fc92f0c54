import os

import httpx
import pytest
from fastapi.testclient import TestClient

from fraud_detector.core import config
from fraud_detector.llm.provider import OpenAIChatProvider
from fraud_detector.main import create_app


@pytest.fixture()
def client(stub_model):
    for name in ("LLM_API_KEY", "SMTP_USER", "SMTP_PASS"):
        os.environ.pop(name, None)
    config.get_settings.cache_clear()
    with TestClient(create_app()) as test_client:
        test_client.app.state.fraud_service.llm_provider = stub_model
        yield test_client
    config.get_settings.cache_clear()


def test_health(client: TestClient):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["status"] == "ok"
    assert payload["llm_configured"] is False
    assert payload["notification_mode"] == "mock"


def test_analyze_returns_result(client: TestClient, fixture_cases):
    resp = client.post("/api/analyze", json=fixture_cases[1]["data"])
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["alert_id"] == "ALT-1002"
    assert payload["decision"]["decision"] == "BLOCK"
    assert isinstance(payload["processing_time_ms"], int)
    assert "agent_response" in payload


def test_analyze_escalation_reports_notification(client: TestClient, fixture_cases):
    resp = client.post("/api/analyze", json=fixture_cases[2]["data"])
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["decision"]["decision"] == "ESCALATE"
    assert payload["escalations"][0]["success"] is True


def test_missing_alert_id_is_rejected(client: TestClient, alert_payload, stub_model):
    del alert_payload["alert_id"]
    resp = client.post("/api/analyze", json=alert_payload)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert stub_model.calls == []


def test_non_object_body_is_rejected(client: TestClient, stub_model):
    resp = client.post("/api/analyze", json=["not", "an", "alert"])
    assert resp.status_code == 400
    assert resp.json() == {"error": "Request body must be a JSON object"}
    assert stub_model.calls == []


def test_model_failure_returns_500(client: TestClient, alert_payload, failing_model):
    client.app.state.fraud_service.llm_provider = failing_model
    resp = client.post("/api/analyze", json=alert_payload)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to analyze transaction", "details": "model quota exceeded"}


def test_upstream_http_error_returns_500(client: TestClient, alert_payload):
    def reject(request):
        return httpx.Response(401, json={"error": "invalid api key"})

    client.app.state.fraud_service.llm_provider = OpenAIChatProvider(
        "bad", "https://llm.test/v1", transport=httpx.MockTransport(reject)
    )
    resp = client.post("/api/analyze", json=alert_payload)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to analyze transaction"
    assert resp.json()["details"]


def test_unparseable_body_is_rejected(client: TestClient, stub_model):
    resp = client.post("/api/analyze", content="{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Request body is not valid JSON"}
    assert stub_model.calls == []
