"""
Concern Models

Data models exchanged between the keyword scanner, the concern
verifier, the escalation orchestrator and the chat store.

SAFETY-CRITICAL: Flag and advice records are the audit trail of
every automated escalation. Fields are append-only from the
pipeline's point of view.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from safechat.domain.enums.concern import ConcernCategory, ConcernLevel, FlagStatus

ChatRole = Literal["user", "assistant", "system"]


@dataclass(frozen=True)
class KeywordScanResult:
    """
    Result of the lexical pre-filter.

    Attributes:
        has_concern: Whether any phrase or composite heuristic matched
        concern_type: Category of the first match
        matched_phrase: Phrase (or heuristic name) that matched
    """

    has_concern: bool
    concern_type: Optional[ConcernCategory] = None
    matched_phrase: Optional[str] = None

    @classmethod
    def clear(cls) -> "KeywordScanResult":
        return cls(has_concern=False)


@dataclass(frozen=True)
class ChatTurn:
    """A prior message used as verification context."""

    role: ChatRole
    content: str

    @property
    def speaker(self) -> str:
        return "Student" if self.role == "user" else "Assistant"


@dataclass(frozen=True)
class Profile:
    """Subset of a user profile needed for escalation."""

    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    country_code: Optional[str] = None


@dataclass(frozen=True)
class RoomRef:
    """
    Classroom the message was sent in.

    Attributes:
        room_id: Room identifier
        room_name: Display name used in teacher alerts
        teacher_id: Owner of the room; receives Flags and alerts
        chatbot_id: Chatbot the student was talking to, if known
    """

    room_id: str
    room_name: str
    teacher_id: str
    chatbot_id: Optional[str] = None


@dataclass(frozen=True)
class ConcernVerdict:
    """
    Verified severity for a flagged message.

    Ephemeral: never persisted directly. The orchestrator derives
    Flag and advice records from it.

    Attributes:
        is_real_concern: Whether the concern is genuine
        concern_level: Severity on the 0-5 scale
        explanation: Short analysis for the reviewing teacher
        student_advice: Supportive reply for the student, or None
        fail_open: True when produced by the failure fallback
        effective_country_code: Helpline table the advice was built from
        helpline_names: Helplines embedded in the prompt and fallback advice
    """

    is_real_concern: bool
    concern_level: ConcernLevel
    explanation: str
    student_advice: Optional[str] = None
    fail_open: bool = False
    effective_country_code: str = "DEFAULT"
    helpline_names: tuple[str, ...] = ()

    def meets(self, threshold: int) -> bool:
        """Whether this verdict is real and at or above a level threshold."""
        return self.is_real_concern and self.concern_level >= threshold

    def to_dict(self) -> dict:
        return {
            "is_real_concern": self.is_real_concern,
            "concern_level": int(self.concern_level),
            "has_advice": bool(self.student_advice),
            "fail_open": self.fail_open,
            "effective_country_code": self.effective_country_code,
        }


@dataclass
class Flag:
    """
    Escalation record for human review.

    Created at most once per triggering message with status PENDING.
    Later status changes belong to the teacher review workflow.
    """

    message_id: str
    student_id: str
    teacher_id: str
    room_id: str
    concern_type: ConcernCategory
    concern_level: ConcernLevel
    explanation: str
    status: FlagStatus = FlagStatus.PENDING
    flag_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class SafetyAdviceMessage:
    """
    Supportive system message injected into the student's chat.

    Created at most once per triggering message, independently
    of Flag creation.
    """

    room_id: str
    student_id: str
    content: str
    concern_type: ConcernCategory
    concern_level: ConcernLevel
    effective_country_code: str = "DEFAULT"
    helpline_names: tuple[str, ...] = ()
    chatbot_id: Optional[str] = None
    role: ChatRole = "system"

    SAFETY_MESSAGE_VERSION = "2.0"

    @property
    def metadata(self) -> dict:
        """Metadata stored alongside the chat message."""
        return {
            "isSystemSafetyResponse": True,
            "originalConcernType": self.concern_type.value,
            "originalConcernLevel": int(self.concern_level),
            "effectiveCountryCode": self.effective_country_code,
            "helplines": ",".join(self.helpline_names),
            "safetyMessageVersion": self.SAFETY_MESSAGE_VERSION,
            "chatbotId": self.chatbot_id,
        }
