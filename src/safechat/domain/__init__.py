"""
SafeChat Domain Layer

Core entities and value objects for the safety pipeline.
These models are independent of storage and transport.
"""

from safechat.domain.enums import ConcernCategory, ConcernLevel, FlagStatus
from safechat.domain.models import (
    ChatTurn,
    ConcernVerdict,
    Flag,
    Profile,
    RoomRef,
    SafetyAdviceMessage,
    SafetyCheckOutcome,
)

__all__ = [
    "ConcernCategory",
    "ConcernLevel",
    "FlagStatus",
    "ChatTurn",
    "ConcernVerdict",
    "Flag",
    "Profile",
    "RoomRef",
    "SafetyAdviceMessage",
    "SafetyCheckOutcome",
]
