"""
Unit Tests for Safety Advice

Every advice text shown to a student must carry the disclosure
sentence and helplines from the resolved table.
"""

import pytest

from safechat.domain.enums.concern import ConcernCategory
from safechat.services.safety.helpline_registry import DEFAULT_CODE
from safechat.services.safety.safety_response import (
    CATEGORY_OPENERS,
    CLOSING_MESSAGE,
    DEFAULT_OPENER,
    DISCLOSURE_SENTENCE,
    ensure_disclosure,
)


class TestEnsureDisclosure:

    def test_prepends_when_missing(self):
        advice = ensure_disclosure("You're not alone. Call Childline on 0800 1111.")

        assert advice.startswith(DISCLOSURE_SENTENCE + "\n\n")
        assert advice.endswith("Call Childline on 0800 1111.")

    def test_unchanged_when_present(self):
        original = f"I hear you. {DISCLOSURE_SENTENCE} Childline can help."

        assert ensure_disclosure(original) == original

    def test_paraphrase_does_not_count(self):
        advice = ensure_disclosure("Your teacher can see this chat.")

        assert DISCLOSURE_SENTENCE in advice


class TestSafetyAdviceBuilder:

    @pytest.mark.parametrize("category", list(ConcernCategory))
    def test_every_category_has_disclosure(self, advice_builder, category):
        advice = advice_builder.build(category, "US")

        assert DISCLOSURE_SENTENCE in advice.content
        assert advice.content.startswith(CATEGORY_OPENERS[category])
        assert advice.content.endswith(CLOSING_MESSAGE)

    def test_uses_country_helplines(self, advice_builder):
        advice = advice_builder.build(ConcernCategory.SELF_HARM, "gb")

        assert advice.effective_country_code == "GB"
        assert advice.helpline_names == ("Childline", "Samaritans")
        assert "* Childline - Phone: 0800 1111" in advice.content
        assert "Shout" not in advice.content

    def test_layout(self, advice_builder):
        advice = advice_builder.build(ConcernCategory.BULLYING, "GB")

        opener_line, block, closing = advice.content.split("\n\n")
        assert opener_line == f"{CATEGORY_OPENERS[ConcernCategory.BULLYING]} {DISCLOSURE_SENTENCE}"
        assert len(block.splitlines()) == 2
        assert closing == CLOSING_MESSAGE

    def test_unknown_country_uses_default(self, advice_builder):
        advice = advice_builder.build(ConcernCategory.ABUSE, "ZZ")

        assert advice.effective_country_code == DEFAULT_CODE
        assert "Talk to a Trusted Adult" in advice.content

    def test_missing_category_uses_default_opener(self, advice_builder):
        advice = advice_builder.build(None, "US")

        assert advice.content.startswith(DEFAULT_OPENER)

    def test_generic_uses_default_table(self, advice_builder):
        advice = advice_builder.build_generic()

        assert advice.effective_country_code == DEFAULT_CODE
        assert advice.content.startswith(DEFAULT_OPENER)
        assert advice.helpline_names == ("Emergency Services", "Talk to a Trusted Adult")
