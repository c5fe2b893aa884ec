"""
Safety Pipeline Stages

Tagged stage records for one run of the safety pipeline:

    Scanned -> NoConcern (terminal)
            -> Verified -> Escalated?  (Flag branch)
                        -> Advised?    (advice branch)

Each stage carries exactly what the next one needs, so a
Verified stage cannot exist without a concern category and a
verdict. SafetyCheckOutcome summarises the run for callers,
metrics and tests.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional, Union

from safechat.domain.enums.concern import ConcernCategory
from safechat.domain.models.concern_models import ChatTurn, ConcernVerdict


class BranchStatus(StrEnum):
    """Outcome of one side-effect branch."""

    SKIPPED = "skipped"        # Threshold not met
    COMPLETED = "completed"    # Record persisted
    FAILED = "failed"          # Persistence failed (logged, non-fatal)


@dataclass(frozen=True)
class NoConcern:
    """Terminal stage: the scanner found nothing."""

    message_id: str
    stage: str = "no_concern"


@dataclass(frozen=True)
class Scanned:
    """Scanner hit: a concern category is known."""

    message_id: str
    concern_type: ConcernCategory
    matched_phrase: Optional[str] = None
    stage: str = "scanned"


@dataclass(frozen=True)
class Verified:
    """Verification finished (possibly via the fail-open fallback)."""

    scanned: Scanned
    verdict: ConcernVerdict
    context: tuple[ChatTurn, ...] = ()
    stage: str = "verified"

    @property
    def concern_type(self) -> ConcernCategory:
        return self.scanned.concern_type


@dataclass(frozen=True)
class Escalated:
    """Flag branch result."""

    status: BranchStatus
    flag_id: Optional[str] = None
    alert_sent: bool = False
    error: Optional[str] = None
    stage: str = "escalated"


@dataclass(frozen=True)
class Advised:
    """Advice branch result."""

    status: BranchStatus
    advice_message_id: Optional[str] = None
    error: Optional[str] = None
    stage: str = "advised"


PipelineStage = Union[NoConcern, Scanned, Verified, Escalated, Advised]


@dataclass(frozen=True)
class SafetyCheckOutcome:
    """
    Summary of one safety pipeline run.

    Attributes:
        message_id: Message that was checked
        final_stage: Last stage reached before side effects
        escalation: Flag branch result (None if never reached)
        advice: Advice branch result (None if never reached)
        error: Unexpected error swallowed at the pipeline boundary
    """

    message_id: str
    final_stage: Union[NoConcern, Scanned, Verified]
    escalation: Optional[Escalated] = None
    advice: Optional[Advised] = None
    error: Optional[str] = None
    stages: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_concern(self) -> bool:
        return not isinstance(self.final_stage, NoConcern)

    @property
    def verdict(self) -> Optional[ConcernVerdict]:
        if isinstance(self.final_stage, Verified):
            return self.final_stage.verdict
        return None

    @property
    def flag_created(self) -> bool:
        return self.escalation is not None and self.escalation.status == BranchStatus.COMPLETED

    @property
    def advice_created(self) -> bool:
        return self.advice is not None and self.advice.status == BranchStatus.COMPLETED

    def to_dict(self) -> dict:
        verdict = self.verdict
        return {
            "message_id": self.message_id,
            "stages": list(self.stages),
            "has_concern": self.has_concern,
            "verdict": verdict.to_dict() if verdict else None,
            "flag_created": self.flag_created,
            "advice_created": self.advice_created,
            "error": self.error,
        }
