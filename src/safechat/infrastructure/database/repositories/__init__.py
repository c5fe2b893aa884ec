"""
Repository pattern implementations package.
"""

from safechat.infrastructure.database.repositories.base import BaseRepository
from safechat.infrastructure.database.repositories.chat_message_repository import ChatMessageRepository
from safechat.infrastructure.database.repositories.flag_repository import FlagRepository
from safechat.infrastructure.database.repositories.profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "ChatMessageRepository",
    "FlagRepository",
    "ProfileRepository",
]
