"""Domain models package."""

from safechat.domain.models.concern_models import (
    ChatTurn,
    ConcernVerdict,
    Flag,
    KeywordScanResult,
    Profile,
    RoomRef,
    SafetyAdviceMessage,
)
from safechat.domain.models.pipeline_stages import (
    Advised,
    BranchStatus,
    Escalated,
    NoConcern,
    PipelineStage,
    SafetyCheckOutcome,
    Scanned,
    Verified,
)

__all__ = [
    # Concern models
    "ChatTurn",
    "ConcernVerdict",
    "Flag",
    "KeywordScanResult",
    "Profile",
    "RoomRef",
    "SafetyAdviceMessage",
    # Pipeline stages
    "Advised",
    "BranchStatus",
    "Escalated",
    "NoConcern",
    "PipelineStage",
    "SafetyCheckOutcome",
    "Scanned",
    "Verified",
]
