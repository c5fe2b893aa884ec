"""
Integration Tests - Safety API

Exercises the HTTP surface with FastAPI's TestClient. Components are
injected through dependency_overrides; the lifespan (database,
Sentry) is not started.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from safechat.api.dependencies import get_chat_store, get_helpline_registry, get_orchestrator
from safechat.main import create_application
from safechat.services.safety.interfaces import PersistenceError

from tests.conftest import model_reply

CHECK_URL = "/api/v1/safety/check"


@pytest.fixture
def safety_messages() -> AsyncMock:
    store = AsyncMock()
    store.latest_safety_message.return_value = None
    store.get_safety_message.return_value = None
    return store


@pytest.fixture
def client(orchestrator, registry, safety_messages) -> TestClient:
    app = create_application()
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_helpline_registry] = lambda: registry
    app.dependency_overrides[get_chat_store] = lambda: safety_messages
    return TestClient(app)


def check_body(message: str, message_id: str = "m-api-1") -> dict:
    return {
        "message_id": message_id,
        "message": message,
        "student_id": "student-1",
        "room_id": "room-1",
        "room_name": "Year 9 Science",
        "teacher_id": "teacher-1",
        "chatbot_id": "bot-1",
        "country_code": "GB",
    }


class TestSafetyCheck:

    def test_no_concern(self, client, mock_provider, store):
        response = client.post(CHECK_URL, json=check_body("What is 7 times 8?"))

        assert response.status_code == 200
        assert response.json() == {"type": "no_concern", "concern_type": None}
        mock_provider.generate.assert_not_called()
        assert store.flags == []

    def test_intervention_runs_pipeline_in_background(self, client, mock_provider, store, dispatcher):
        mock_provider.generate.return_value = model_reply(level=4)

        response = client.post(CHECK_URL, json=check_body("  I want to kill myself  "))

        assert response.status_code == 200
        assert response.json() == {
            "type": "safety_intervention_triggered",
            "concern_type": "self_harm",
        }
        # TestClient runs background tasks before returning
        assert len(store.flags) == 1
        assert store.flags[0].message_id == "m-api-1"
        assert len(dispatcher.alerts) == 1
        assert len(store.system_messages) == 1
        assert store.system_messages[0]["metadata"]["effectiveCountryCode"] == "GB"

    def test_below_threshold_only_advises(self, client, mock_provider, store):
        mock_provider.generate.return_value = model_reply(level=2)

        client.post(CHECK_URL, json=check_body("I feel empty most days"))

        assert store.flags == []
        assert len(store.system_messages) == 1

    def test_validation_error(self, client):
        response = client.post(CHECK_URL, json={"message": "hi"})

        assert response.status_code == 422

    def test_correlation_id_echoed(self, client):
        response = client.post(
            CHECK_URL,
            json=check_body("hello"),
            headers={"X-Correlation-ID": "corr-123"},
        )

        assert response.headers["X-Correlation-ID"] == "corr-123"


class TestScan:

    def test_scan_reports_all_categories(self, client):
        response = client.post(
            "/api/v1/safety/scan",
            json={"message": "everyone hates me and I want to die"},
        )

        body = response.json()
        assert body["has_concern"] is True
        assert body["concern_type"] == "self_harm"
        assert body["matched_phrase"] == "want to die"
        assert body["all_categories"] == ["self_harm", "bullying"]


class TestHelplines:

    def test_country(self, client):
        response = client.get("/api/v1/safety/helplines/uk")

        body = response.json()
        assert body["requested_country_code"] == "uk"
        assert body["effective_country_code"] == "GB"
        assert body["helplines"][0]["name"] == "Childline"

    def test_unknown_country(self, client):
        body = client.get("/api/v1/safety/helplines/ZZ").json()

        assert body["effective_country_code"] == "DEFAULT"


class TestSafetyMessage:

    def test_requires_user_and_lookup_key(self, client):
        assert client.get("/api/v1/safety/message").status_code == 400
        assert client.get("/api/v1/safety/message", params={"user_id": "student-1"}).status_code == 400

    def test_latest_none(self, client, safety_messages):
        response = client.get("/api/v1/safety/message", params={"user_id": "student-1", "room_id": "room-1"})

        assert response.json() == {"found": False, "message": None}
        safety_messages.latest_safety_message.assert_awaited_once_with("student-1", "room-1")

    def test_latest_found(self, client, safety_messages):
        safety_messages.latest_safety_message.return_value = {"message_id": "sys-1", "content": "advice"}

        body = client.get("/api/v1/safety/message", params={"user_id": "student-1", "room_id": "room-1"}).json()

        assert body["found"] is True
        assert body["message"]["message_id"] == "sys-1"

    def test_specific_message_not_found(self, client):
        response = client.get("/api/v1/safety/message", params={"user_id": "student-1", "message_id": "sys-9"})

        assert response.status_code == 404

    def test_store_failure(self, client, safety_messages):
        safety_messages.latest_safety_message.side_effect = PersistenceError("latest_safety_message", "db down")

        response = client.get("/api/v1/safety/message", params={"user_id": "student-1", "room_id": "room-1"})

        assert response.status_code == 503


class TestHealth:

    def test_health(self, client):
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"

    def test_live(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"

    def test_ready_without_database(self, client, monkeypatch, mock_provider):
        monkeypatch.setattr(
            "safechat.infrastructure.llm.provider_factory.get_llm_provider",
            lambda: mock_provider,
        )

        body = client.get("/api/v1/health/ready").json()

        assert body["ready"] is False
        assert body["components"] == {"database": False, "verifier_configured": True}

    def test_metrics(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "safechat_safety_checks_total" in response.text
