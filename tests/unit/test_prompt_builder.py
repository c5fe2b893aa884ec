"""
Unit Tests for Verification Prompt Builder
"""

import pytest

from safechat.domain.enums.concern import ConcernCategory
from safechat.domain.models.concern_models import ChatTurn
from safechat.services.prompt.prompt_builder import (
    HELPLINE_BLOCK_END,
    HELPLINE_BLOCK_START,
    VerificationPromptBuilder,
)
from safechat.services.safety.safety_response import DISCLOSURE_SENTENCE


@pytest.fixture
def builder() -> VerificationPromptBuilder:
    return VerificationPromptBuilder()


class TestPromptContent:

    def test_contract_keys_in_system_prompt(self, builder):
        prompt = builder.build("I want to kill myself", ConcernCategory.SELF_HARM)

        for key in ("isRealConcern", "concernLevel", "analysisExplanation", "aiGeneratedAdvice"):
            assert key in prompt.system_prompt

    def test_system_prompt_carries_disclosure(self, builder):
        prompt = builder.build("hi", ConcernCategory.BULLYING)

        assert DISCLOSURE_SENTENCE in prompt.system_prompt

    def test_category_label(self, builder):
        prompt = builder.build("my parents always fighting", ConcernCategory.FAMILY_ISSUES)

        assert "Concern Category Identified: family issues" in prompt.user_message

    def test_message_quoted(self, builder):
        prompt = builder.build("I want to kill myself", ConcernCategory.SELF_HARM)

        assert 'Student Message: "I want to kill myself"' in prompt.user_message

    def test_helpline_block_embedded_verbatim(self, builder):
        block = "* Childline - Phone: 0800 1111\n* Samaritans - Phone: 116 123"

        prompt = builder.build("msg", ConcernCategory.SELF_HARM, helpline_block=block, country_code="GB")

        assert f"{HELPLINE_BLOCK_START}\n{block}\n{HELPLINE_BLOCK_END}" in prompt.user_message
        assert "(GB)" in prompt.user_message

    def test_no_helpline_section_without_block(self, builder):
        prompt = builder.build("msg", ConcernCategory.SELF_HARM)

        assert HELPLINE_BLOCK_START not in prompt.user_message

    def test_to_messages(self, builder):
        messages = builder.build("msg", ConcernCategory.DEPRESSION).to_messages()

        assert [m["role"] for m in messages] == ["system", "user"]


class TestContextWindow:

    def test_last_three_turns_only(self, builder):
        context = [
            ChatTurn(role="user", content="turn one"),
            ChatTurn(role="assistant", content="turn two"),
            ChatTurn(role="user", content="turn three"),
            ChatTurn(role="assistant", content="turn four"),
        ]

        prompt = builder.build("msg", ConcernCategory.SELF_HARM, context)

        assert prompt.context_turns == 3
        assert "turn one" not in prompt.user_message
        assert "Assistant: turn two\nStudent: turn three\nAssistant: turn four" in prompt.user_message

    def test_no_context_section_when_empty(self, builder):
        prompt = builder.build("msg", ConcernCategory.SELF_HARM, [])

        assert prompt.context_turns == 0
        assert "Recent Conversation History" not in prompt.user_message

    def test_context_disabled(self):
        builder = VerificationPromptBuilder(max_context_turns=0)

        prompt = builder.build("msg", ConcernCategory.SELF_HARM, [ChatTurn(role="user", content="earlier")])

        assert prompt.context_turns == 0


class TestBounds:

    def test_long_message_truncated(self):
        builder = VerificationPromptBuilder(max_message_chars=20)

        prompt = builder.build("x" * 100, ConcernCategory.SELF_HARM)

        assert "x" * 21 not in prompt.user_message
        assert "x" * 20 + "..." in prompt.user_message

    def test_long_turn_truncated(self):
        builder = VerificationPromptBuilder(max_turn_chars=10)

        prompt = builder.build("msg", ConcernCategory.SELF_HARM, [ChatTurn(role="user", content="y" * 50)])

        assert "Student: " + "y" * 10 + "..." in prompt.user_message

    def test_generation_settings(self):
        prompt = VerificationPromptBuilder(max_tokens=300, temperature=0.1).build("msg", ConcernCategory.ABUSE)

        assert prompt.max_tokens == 300
        assert prompt.temperature == 0.1
