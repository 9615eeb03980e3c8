# tests/unit/libs/autocomplete-common/test_autocomplete_health.py
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from autocomplete_common.health import create_health_router


def _client(*dependencies: str, context=None) -> TestClient:
    app = FastAPI()
    if context is not None:
        app.state.autocomplete = context
    app.include_router(create_health_router(*dependencies))
    return TestClient(app)


def _context(*names: str):
    registry = MagicMock()
    registry.names.return_value = list(names)
    return SimpleNamespace(registry=registry)


def test_liveness_probe_is_always_alive():
    response = _client("db").get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


@patch("autocomplete_common.health.check_db_health", new_callable=AsyncMock)
def test_readiness_probe_reports_database_status(mock_check):
    """
    GIVEN the database probe succeeds, then fails
    WHEN the readiness endpoint is called
    THEN it answers 200 and then 503 with the dependency status.
    """
    mock_check.return_value = True
    ok = _client("db").get("/health/ready")
    assert ok.status_code == 200
    assert ok.json() == {"status": "ready", "dependencies": {"database": "ok"}}

    mock_check.return_value = False
    down = _client("db").get("/health/ready")
    assert down.status_code == 503
    assert down.json()["detail"]["dependencies"] == {"database": "unavailable"}


def test_readiness_requires_a_populated_provider_registry():
    """
    GIVEN an app whose startup did not store a context, one with an empty
    registry, and one with registered providers
    WHEN the readiness endpoint checks providers
    THEN only the last one is ready.
    """
    missing = _client("providers").get("/health/ready")
    assert missing.status_code == 503
    assert missing.json()["detail"]["dependencies"] == {"providers": "unavailable"}

    empty = _client("providers", context=_context()).get("/health/ready")
    assert empty.status_code == 503

    ready = _client("providers", context=_context("countries")).get("/health/ready")
    assert ready.status_code == 200
    assert ready.json() == {"status": "ready", "dependencies": {"providers": "ok"}}


def test_unknown_dependency_names_are_rejected():
    with pytest.raises(ValueError, match="kafka"):
        create_health_router("db", "kafka")
