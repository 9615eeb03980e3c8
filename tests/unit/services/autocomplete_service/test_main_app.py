# tests/unit/services/autocomplete_service/test_main_app.py
from fastapi.testclient import TestClient

from src.services.autocomplete_service.app.main import app


def test_metrics_and_liveness_are_exposed():
    client = TestClient(app)

    assert client.get("/health/live").json() == {"status": "alive"}
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "autocomplete_requests_total" in metrics.text


def test_incoming_correlation_id_is_echoed():
    client = TestClient(app)

    response = client.get("/health/live", headers={"X-Correlation-ID": "ACP:given"})

    assert response.headers["X-Correlation-ID"] == "ACP:given"


def test_missing_context_is_a_configuration_error():
    client = TestClient(app)

    response = client.get("/_autocomplete/countries")

    assert response.status_code == 500
    assert response.json()["error"] == "ConfigurationError"
