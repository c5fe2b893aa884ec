"""
Unit Tests for Keyword Scanner

Tests phrase matching, category tie-break and composite heuristics.
"""

import pytest
from types import MappingProxyType

from safechat.domain.enums.concern import ConcernCategory
from safechat.services.safety.keyword_scanner import (
    DEFAULT_KEYWORDS,
    CompositeHeuristic,
    KeywordScanner,
)


@pytest.fixture
def scanner() -> KeywordScanner:
    return KeywordScanner()


class TestEmptyInput:
    """Blank input never matches."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_text_is_clear(self, scanner, text):
        result = scanner.scan(text)

        assert result.has_concern is False
        assert result.concern_type is None

    def test_ordinary_message_is_clear(self, scanner):
        result = scanner.scan("Can you explain photosynthesis again?")

        assert result.has_concern is False


class TestPhraseMatching:
    """Phrase lookup per category."""

    def test_self_harm_phrase(self, scanner):
        result = scanner.scan("I want to kill myself")

        assert result.has_concern is True
        assert result.concern_type == ConcernCategory.SELF_HARM
        assert result.matched_phrase == "kill myself"

    def test_case_insensitive(self, scanner):
        result = scanner.scan("EVERYONE HATES ME at school")

        assert result.concern_type == ConcernCategory.BULLYING

    def test_typographic_apostrophe(self, scanner):
        result = scanner.scan("I don’t want to live")

        assert result.concern_type == ConcernCategory.SELF_HARM

    def test_word_boundary_required(self, scanner):
        result = scanner.scan("The bullyish tone of the essay")

        assert result.has_concern is False

    @pytest.mark.parametrize("text,expected", [
        ("they called me names again today", ConcernCategory.BULLYING),
        ("my stepdad punched me last night", ConcernCategory.ABUSE),
        ("I feel empty most days", ConcernCategory.DEPRESSION),
        ("my parents always fighting and I hate it", ConcernCategory.FAMILY_ISSUES),
    ])
    def test_each_category(self, scanner, text, expected):
        assert scanner.scan(text).concern_type == expected

    def test_deterministic(self, scanner):
        text = "nobody likes me and I feel so alone"

        assert scanner.scan(text) == scanner.scan(text)


class TestTieBreak:
    """First category in table order wins."""

    def test_self_harm_before_bullying(self, scanner):
        # Matches both BULLYING ("everyone hates me") and SELF_HARM ("want to die")
        result = scanner.scan("everyone hates me and I want to die")

        assert result.concern_type == ConcernCategory.SELF_HARM

    def test_bullying_before_depression(self, scanner):
        result = scanner.scan("nobody cares that I'm being bullied")

        assert result.concern_type == ConcernCategory.BULLYING

    def test_scan_all_lists_every_category(self, scanner):
        categories = scanner.scan_all("everyone hates me and I want to die, nobody cares")

        assert categories == [
            ConcernCategory.SELF_HARM,
            ConcernCategory.BULLYING,
            ConcernCategory.DEPRESSION,
        ]

    def test_scan_all_blank(self, scanner):
        assert scanner.scan_all("  ") == []


class TestCompositeHeuristics:
    """Phrase-combination rules, always tagged SELF_HARM."""

    def test_no_point_anymore(self, scanner):
        result = scanner.scan("there's no point anymore")

        assert result.concern_type == ConcernCategory.SELF_HARM
        assert result.matched_phrase == "worthlessness_of_living"

    def test_not_worth_going_on_variant(self, scanner):
        result = scanner.scan("honestly it's not worth it, why keep going on")

        assert result.concern_type == ConcernCategory.SELF_HARM

    def test_heuristic_only_after_phrases(self):
        scanner = KeywordScanner(
            keywords=MappingProxyType({ConcernCategory.BULLYING: ("no point",)}),
        )

        result = scanner.scan("no point anymore")

        assert result.concern_type == ConcernCategory.BULLYING

    def test_custom_heuristic(self):
        scanner = KeywordScanner(
            keywords=MappingProxyType({}),
            heuristics=(CompositeHeuristic(name="pair", first=("alpha",), second=("beta",)),),
        )

        assert scanner.scan("alpha then beta").matched_phrase == "pair"
        assert scanner.scan("alpha only").has_concern is False


class TestConfiguration:
    """Injected tables."""

    def test_default_table_covers_all_categories(self):
        assert set(DEFAULT_KEYWORDS) == set(ConcernCategory)

    def test_default_table_is_immutable(self):
        with pytest.raises(TypeError):
            DEFAULT_KEYWORDS[ConcernCategory.ABUSE] = ()  # type: ignore[index]

    def test_substituted_table(self):
        scanner = KeywordScanner(
            keywords=MappingProxyType({ConcernCategory.DEPRESSION: ("grey skies",)}),
            heuristics=(),
        )

        assert scanner.scan("Grey skies every day").concern_type == ConcernCategory.DEPRESSION
        assert scanner.scan("I want to kill myself").has_concern is False
