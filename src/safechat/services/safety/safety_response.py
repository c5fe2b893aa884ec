"""
Safety Advice Builder

Deterministic supportive replies shown to a student when a concern
is verified at or above the advice threshold.

SAFETY-CRITICAL: Every advice text shown to a student must contain
DISCLOSURE_SENTENCE verbatim. ensure_disclosure() is the only way
advice leaves the verifier.

CLINICAL_REVIEW_REQUIRED: Wording should be reviewed by
safeguarding staff before deployment.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from safechat.domain.enums.concern import ConcernCategory
from safechat.services.safety.helpline_registry import (
    DEFAULT_CODE,
    HelplineEntry,
    HelplineRegistry,
)

DISCLOSURE_SENTENCE = (
    "Remember, your teacher can see this conversation and is here to support you. "
    "Please feel comfortable reaching out to them or another trusted adult if you need help."
)

CLOSING_MESSAGE = "Help is available."

CATEGORY_OPENERS: Mapping[ConcernCategory, str] = MappingProxyType({
    ConcernCategory.SELF_HARM: (
        "I notice you may be having some difficult thoughts. "
        "Please know that you're not alone and help is available."
    ),
    ConcernCategory.BULLYING: (
        "I understand you might be experiencing bullying, which can be really tough. "
        "You deserve support and there are people who can help."
    ),
    ConcernCategory.ABUSE: (
        "I notice you may be in a difficult situation. "
        "Your safety is important, and there are resources available to support you."
    ),
    ConcernCategory.DEPRESSION: (
        "I understand you might be feeling down. "
        "Remember that these feelings can improve with the right support."
    ),
    ConcernCategory.FAMILY_ISSUES: (
        "Family challenges can be really difficult. "
        "It's important to know that support is available to help you through this time."
    ),
})

DEFAULT_OPENER = (
    "I notice you might be going through a difficult time. "
    "It's important to reach out for support when needed."
)


def ensure_disclosure(advice: str) -> str:
    """Prepend the disclosure sentence if it is not already present verbatim."""
    if DISCLOSURE_SENTENCE in advice:
        return advice
    return f"{DISCLOSURE_SENTENCE}\n\n{advice.strip()}"


@dataclass(frozen=True)
class AdviceText:
    """Advice content plus the helpline table it was built from."""

    content: str
    effective_country_code: str
    helpline_names: tuple[str, ...]


class SafetyAdviceBuilder:
    """
    Builds fallback advice from the helpline registry.

    Usage:
        builder = SafetyAdviceBuilder(HelplineRegistry())
        advice = builder.build(ConcernCategory.SELF_HARM, "GB")
    """

    def __init__(self, registry: HelplineRegistry, max_helplines: int = 2) -> None:
        self._registry = registry
        self._max_helplines = max_helplines

    @property
    def registry(self) -> HelplineRegistry:
        return self._registry

    def resolve(self, country_code: Optional[str]) -> tuple[str, tuple[HelplineEntry, ...]]:
        """Resolve the capped helpline list for a country."""
        return self._registry.resolve(country_code, limit=self._max_helplines)

    def build(
        self,
        concern_type: Optional[ConcernCategory],
        country_code: Optional[str],
    ) -> AdviceText:
        """
        Build fallback advice for a concern.

        Layout: opener and disclosure, blank line, helpline bullets,
        blank line, closing.
        """
        effective_code, entries = self.resolve(country_code)
        opener = CATEGORY_OPENERS.get(concern_type, DEFAULT_OPENER) if concern_type else DEFAULT_OPENER
        content = (
            f"{opener} {DISCLOSURE_SENTENCE}\n\n"
            f"{self._registry.format_block(entries)}\n\n"
            f"{CLOSING_MESSAGE}"
        )
        return AdviceText(
            content=content,
            effective_country_code=effective_code,
            helpline_names=tuple(e.name for e in entries),
        )

    def build_generic(self, concern_type: Optional[ConcernCategory] = None) -> AdviceText:
        """Fallback advice from the DEFAULT table, used when verification fails."""
        return self.build(concern_type, DEFAULT_CODE)
