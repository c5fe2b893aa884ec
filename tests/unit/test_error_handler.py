"""
Unit Tests for the Error Handler Middleware
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from safechat.api.middleware.error_handler import ErrorHandlerMiddleware, classify_error
from safechat.infrastructure.llm.provider import LLMProviderError
from safechat.services.safety.helpline_registry import HelplineConfigError
from safechat.services.safety.interfaces import PersistenceError


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(ErrorHandlerMiddleware)

    @app.get("/store-down")
    async def store_down():
        raise PersistenceError("latest_safety_message", "connection refused")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("db-password=hunter2")

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize("error,status,code", [
    (PersistenceError("insert_flag", "db down"), 503, "store_unavailable"),
    (LLMProviderError("timeout", provider="openai"), 502, "verifier_unavailable"),
    (HelplineConfigError("no DEFAULT"), 500, "helpline_config_invalid"),
    (KeyError("x"), 500, "internal_error"),
])
def test_classify_error(error, status, code):
    assert classify_error(error)[:2] == (status, code)


def test_store_failure_is_503(client):
    response = client.get("/store-down", headers={"X-Correlation-ID": "corr-9"})

    assert response.status_code == 503
    assert response.json()["error"] == "store_unavailable"
    assert response.json()["correlation_id"] == "corr-9"
    assert response.headers["X-Correlation-ID"] == "corr-9"


def test_unexpected_error_is_500_without_details(client):
    response = client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "internal_error"
    assert "hunter2" not in response.text
    assert body["correlation_id"]
