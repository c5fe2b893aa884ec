"""Tests configuration and fixtures."""

import json
from datetime import datetime, timedelta
from typing import Any, Optional
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from safechat.config import Settings
from safechat.domain.models.concern_models import ChatTurn, Flag, Profile, RoomRef
from safechat.infrastructure.llm.provider import LLMProvider, LLMResponse
from safechat.services.safety.concern_verifier import ConcernVerifier
from safechat.services.safety.escalation_orchestrator import EscalationOrchestrator
from safechat.services.safety.helpline_registry import HelplineRegistry
from safechat.services.safety.interfaces import AlertDispatcher, ChatStore, PersistenceError
from safechat.services.safety.keyword_scanner import KeywordScanner
from safechat.services.safety.safety_response import SafetyAdviceBuilder


class InMemoryChatStore(ChatStore):
    """Dict-backed ChatStore with switchable failures."""

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.messages: list[dict[str, Any]] = []
        self.flags: list[Flag] = []
        self.system_messages: list[dict[str, Any]] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise PersistenceError(operation, "simulated failure")

    def add_message(
        self,
        room_id: str,
        user_id: str,
        role: str,
        content: str,
        created_at: datetime,
        chatbot_id: Optional[str] = None,
        message_id: Optional[str] = None,
    ) -> str:
        message_id = message_id or str(uuid4())
        self.messages.append({
            "message_id": message_id,
            "room_id": room_id,
            "user_id": user_id,
            "role": role,
            "content": content,
            "created_at": created_at,
            "chatbot_id": chatbot_id,
        })
        return message_id

    async def get_message_anchor(self, message_id: str):
        self._maybe_fail("get_message_anchor")
        for m in self.messages:
            if m["message_id"] == message_id:
                return m["created_at"], m["chatbot_id"]
        return None

    async def fetch_prior_messages(self, room_id, student_id, chatbot_id, before_timestamp, limit):
        self._maybe_fail("fetch_prior_messages")
        rows = [
            m for m in self.messages
            if m["room_id"] == room_id
            and m["user_id"] == student_id
            and m["chatbot_id"] == chatbot_id
            and m["created_at"] < before_timestamp
        ]
        rows.sort(key=lambda m: m["created_at"], reverse=True)
        return [ChatTurn(role=m["role"], content=m["content"]) for m in reversed(rows[:limit])]

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        self._maybe_fail("get_profile")
        return self.profiles.get(user_id)

    async def insert_flag(self, flag: Flag) -> str:
        self._maybe_fail("insert_flag")
        flag.flag_id = f"flag-{len(self.flags) + 1}"
        self.flags.append(flag)
        return flag.flag_id

    async def insert_system_message(self, room_id, student_id, content, metadata, chatbot_id=None) -> str:
        self._maybe_fail("insert_system_message")
        message_id = f"sys-{len(self.system_messages) + 1}"
        self.system_messages.append({
            "message_id": message_id,
            "room_id": room_id,
            "student_id": student_id,
            "content": content,
            "metadata": metadata,
            "chatbot_id": chatbot_id,
        })
        return message_id


class RecordingAlertDispatcher(AlertDispatcher):
    """Records alerts; can be told to fail or raise."""

    def __init__(self, result: bool = True, raises: Optional[Exception] = None) -> None:
        self.result = result
        self.raises = raises
        self.alerts: list[dict[str, Any]] = []

    async def send_teacher_alert(self, **kwargs) -> bool:
        self.alerts.append(kwargs)
        if self.raises:
            raise self.raises
        return self.result


def model_reply(
    is_real: Any = True,
    level: Any = 4,
    explanation: Any = "Student expresses intent to self-harm.",
    advice: Any = None,
) -> LLMResponse:
    """LLMResponse carrying a verifier JSON object."""
    payload = {
        "isRealConcern": is_real,
        "concernLevel": level,
        "analysisExplanation": explanation,
        "aiGeneratedAdvice": advice,
    }
    return LLMResponse(content=json.dumps(payload), model="test-model", provider="mock")


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with mock values."""
    return Settings(
        env="development",
        debug=False,
    )


@pytest.fixture
def mock_provider() -> AsyncMock:
    provider = AsyncMock(spec=LLMProvider)
    provider.generate.return_value = model_reply()
    provider.is_configured.return_value = True
    return provider


@pytest.fixture
def registry() -> HelplineRegistry:
    return HelplineRegistry()


@pytest.fixture
def advice_builder(registry: HelplineRegistry) -> SafetyAdviceBuilder:
    return SafetyAdviceBuilder(registry, max_helplines=2)


@pytest.fixture
def verifier(mock_provider: AsyncMock, advice_builder: SafetyAdviceBuilder) -> ConcernVerifier:
    return ConcernVerifier(mock_provider, advice_builder, timeout_seconds=1.0)


@pytest.fixture
def store() -> InMemoryChatStore:
    store = InMemoryChatStore()
    store.profiles["teacher-1"] = Profile(user_id="teacher-1", email="teacher@school.test", full_name="Ms Rivera")
    store.profiles["student-1"] = Profile(user_id="student-1", full_name="Sam Lee", country_code="GB")
    return store


@pytest.fixture
def dispatcher() -> RecordingAlertDispatcher:
    return RecordingAlertDispatcher()


@pytest.fixture
def room() -> RoomRef:
    return RoomRef(room_id="room-1", room_name="Year 9 Science", teacher_id="teacher-1", chatbot_id="bot-1")


@pytest.fixture
def stored_message(store: InMemoryChatStore) -> str:
    """A student message plus three earlier turns in the same conversation."""
    now = datetime.utcnow()
    for i, (role, content) in enumerate([
        ("user", "can you help with my homework"),
        ("assistant", "Of course, what topic?"),
        ("user", "actually I'm not feeling great"),
    ]):
        store.add_message("room-1", "student-1", role, content, now - timedelta(minutes=10 - i), chatbot_id="bot-1")
    return store.add_message("room-1", "student-1", "user", "I want to kill myself", now, chatbot_id="bot-1")


@pytest.fixture
def orchestrator(
    verifier: ConcernVerifier,
    store: InMemoryChatStore,
    dispatcher: RecordingAlertDispatcher,
) -> EscalationOrchestrator:
    return EscalationOrchestrator(
        scanner=KeywordScanner(),
        verifier=verifier,
        store=store,
        dispatcher=dispatcher,
        app_url="https://safechat.test",
    )
