"""
Concern Category, Level and Flag Status Enumerations

Defines the taxonomy that routes keyword matches and frames
verification prompts, the 0-5 severity scale assigned by the
verifier, and the review lifecycle of a persisted Flag.

CLINICAL_REVIEW_REQUIRED: Category boundaries and level wording
are shown to teachers and should be reviewed by pastoral staff.
"""

import math
from enum import IntEnum, StrEnum


class ConcernCategory(StrEnum):
    """
    Taxonomy bucket for a detected concern.

    Declaration order is the keyword scanner's tie-break order
    when a message matches phrases in several categories.
    """

    SELF_HARM = "self_harm"
    BULLYING = "bullying"
    ABUSE = "abuse"
    DEPRESSION = "depression"
    FAMILY_ISSUES = "family_issues"

    @property
    def display_name(self) -> str:
        """Human-readable name, e.g. "Family Issues"."""
        return " ".join(word.capitalize() for word in self.value.split("_"))

    @property
    def prompt_label(self) -> str:
        """Lower-case label used inside model prompts, e.g. "self harm"."""
        return self.value.replace("_", " ")


class ConcernLevel(IntEnum):
    """
    Severity assigned by the verification step.

    The verifier contract is an integer in [0, 5]; values outside
    the range are clamped before they reach this enum.
    """

    NONE = 0
    MINOR = 1
    MODERATE = 2
    SIGNIFICANT = 3
    HIGH = 4
    CRITICAL = 5

    @classmethod
    def clamp(cls, value: float) -> "ConcernLevel":
        """Round half up and clamp an arbitrary number onto the scale."""
        if value >= cls.CRITICAL:
            return cls.CRITICAL
        if value <= cls.NONE:
            return cls.NONE
        rounded = math.floor(value + 0.5)
        return cls(max(cls.NONE, min(cls.CRITICAL, rounded)))

    @property
    def display_name(self) -> str:
        if self == ConcernLevel.NONE:
            return "Low"
        return self.name.capitalize()


class FlagStatus(StrEnum):
    """
    Review lifecycle of a persisted Flag.

    The pipeline only ever writes PENDING. Later transitions
    belong to the human review workflow.
    """

    PENDING = "pending"
    REVIEWING = "reviewing"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"
