"""
SQLAlchemy Chat Store

ChatStore implementation over the profiles, chat_messages and
flagged_messages tables. Each call runs in its own session, so the
Flag insert and the advice insert never share a transaction.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from safechat.config.logging_config import get_logger
from safechat.domain.models.concern_models import ChatTurn, Flag, Profile
from safechat.infrastructure.database.connection import DatabaseManager
from safechat.infrastructure.database.models.chat_message_model import ChatMessageModel
from safechat.infrastructure.database.repositories import (
    ChatMessageRepository,
    FlagRepository,
    ProfileRepository,
)
from safechat.services.safety.interfaces import ChatStore, PersistenceError

logger = get_logger(__name__)

_ROLES = {"user", "assistant", "system"}


class SqlAlchemyChatStore(ChatStore):
    """
    Async SQLAlchemy chat store.

    Usage:
        store = SqlAlchemyChatStore(get_db_manager())
        flag_id = await store.insert_flag(flag)
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_message_anchor(self, message_id: str) -> Optional[tuple[datetime, Optional[str]]]:
        try:
            async with self._db.session() as session:
                message = await ChatMessageRepository(session).get_by_id(message_id)
        except SQLAlchemyError as e:
            raise PersistenceError("get_message_anchor", str(e), e) from e

        if message is None:
            logger.debug("Anchor message not found", message_id=message_id)
            return None
        chatbot_id = message.chatbot_id or (message.message_metadata or {}).get("chatbotId")
        return message.created_at, chatbot_id

    async def fetch_prior_messages(
        self,
        room_id: str,
        student_id: str,
        chatbot_id: Optional[str],
        before_timestamp: datetime,
        limit: int,
    ) -> list[ChatTurn]:
        try:
            async with self._db.session() as session:
                rows = await ChatMessageRepository(session).list_prior(
                    room_id, student_id, chatbot_id, before_timestamp, limit,
                )
        except SQLAlchemyError as e:
            raise PersistenceError("fetch_prior_messages", str(e), e) from e

        # Newest-first from the query; callers want chronological
        return [
            ChatTurn(role=row.role if row.role in _ROLES else "user", content=row.content or "")
            for row in reversed(rows)
        ]

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            async with self._db.session() as session:
                row = await ProfileRepository(session).get_by_id(user_id)
        except SQLAlchemyError as e:
            raise PersistenceError("get_profile", str(e), e) from e

        if row is None:
            return None
        return Profile(
            user_id=row.user_id,
            email=row.email,
            full_name=row.full_name,
            country_code=row.country_code,
        )

    async def insert_flag(self, flag: Flag) -> str:
        try:
            async with self._db.session() as session:
                row = await FlagRepository(session).create_from_flag(flag)
                flag_id = row.flag_id
        except SQLAlchemyError as e:
            raise PersistenceError("insert_flag", str(e), e) from e

        flag.flag_id = flag_id
        return flag_id

    async def insert_system_message(
        self,
        room_id: str,
        student_id: str,
        content: str,
        metadata: dict[str, Any],
        chatbot_id: Optional[str] = None,
    ) -> str:
        try:
            async with self._db.session() as session:
                row = await ChatMessageRepository(session).create_message(
                    room_id=room_id,
                    user_id=student_id,
                    role="system",
                    content=content,
                    metadata=metadata,
                    chatbot_id=chatbot_id,
                )
                message_id = row.message_id
        except SQLAlchemyError as e:
            raise PersistenceError("insert_system_message", str(e), e) from e

        return message_id

    async def latest_safety_message(self, user_id: str, room_id: str) -> Optional[dict[str, Any]]:
        """Most recent safety advice message for a student in a room, as a dict."""
        try:
            async with self._db.session() as session:
                row = await ChatMessageRepository(session).latest_safety_message(user_id, room_id)
                return _message_view(row) if row else None
        except SQLAlchemyError as e:
            raise PersistenceError("latest_safety_message", str(e), e) from e

    async def get_safety_message(self, message_id: str, user_id: str) -> Optional[dict[str, Any]]:
        """A specific safety advice message owned by user_id, as a dict."""
        try:
            async with self._db.session() as session:
                row = await ChatMessageRepository(session).get_safety_message(message_id, user_id)
                return _message_view(row) if row else None
        except SQLAlchemyError as e:
            raise PersistenceError("get_safety_message", str(e), e) from e


def _message_view(row: ChatMessageModel) -> dict[str, Any]:
    metadata = dict(row.message_metadata or {})
    metadata.setdefault("effectiveCountryCode", "DEFAULT")
    return {
        "message_id": row.message_id,
        "room_id": row.room_id,
        "user_id": row.user_id,
        "role": row.role,
        "content": row.content,
        "metadata": metadata,
        "created_at": row.created_at.isoformat(),
    }
