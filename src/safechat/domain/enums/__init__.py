"""Domain enums package."""

from safechat.domain.enums.concern import ConcernCategory, ConcernLevel, FlagStatus

__all__ = ["ConcernCategory", "ConcernLevel", "FlagStatus"]
