"""
Database ORM models package.
"""

from safechat.infrastructure.database.models.profile_model import ProfileModel
from safechat.infrastructure.database.models.room_model import RoomModel
from safechat.infrastructure.database.models.chat_message_model import ChatMessageModel
from safechat.infrastructure.database.models.flagged_message_model import FlaggedMessageModel

__all__ = [
    "ProfileModel",
    "RoomModel",
    "ChatMessageModel",
    "FlaggedMessageModel",
]
