"""
Chat Message Repository

Context reads and system-message writes for the safety pipeline,
plus safety-message lookups for the student UI.
"""

from datetime import datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safechat.infrastructure.database.models.chat_message_model import ChatMessageModel
from safechat.infrastructure.database.repositories.base import BaseRepository

# System messages scanned when looking for the latest safety message
SAFETY_LOOKUP_WINDOW = 20


class ChatMessageRepository(BaseRepository[ChatMessageModel]):
    """
    Repository for chat messages.

    Usage:
        repo = ChatMessageRepository(session)
        prior = await repo.list_prior(room_id, student_id, chatbot_id, before, limit=4)
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ChatMessageModel, session)

    async def list_prior(
        self,
        room_id: str,
        user_id: str,
        chatbot_id: Optional[str],
        before: datetime,
        limit: int,
    ) -> Sequence[ChatMessageModel]:
        """
        Messages strictly older than `before` in one conversation.

        A None chatbot_id matches messages without a chatbot.

        Returns:
            Newest first
        """
        chatbot_filter = (
            ChatMessageModel.chatbot_id.is_(None)
            if chatbot_id is None
            else ChatMessageModel.chatbot_id == chatbot_id
        )
        result = await self._session.execute(
            select(ChatMessageModel)
            .where(
                ChatMessageModel.room_id == room_id,
                ChatMessageModel.user_id == user_id,
                chatbot_filter,
                ChatMessageModel.created_at < before,
            )
            .order_by(ChatMessageModel.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def create_message(
        self,
        room_id: str,
        user_id: str,
        role: str,
        content: str,
        metadata: Optional[dict[str, Any]] = None,
        chatbot_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> ChatMessageModel:
        """Insert a chat message."""
        row = ChatMessageModel(
            room_id=room_id,
            user_id=user_id,
            role=role,
            content=content,
            message_metadata=metadata or {},
            chatbot_id=chatbot_id,
        )
        if created_at is not None:
            row.created_at = created_at
        return await self.create(row)

    async def latest_safety_message(self, user_id: str, room_id: str) -> Optional[ChatMessageModel]:
        """Most recent safety advice message in a student's room conversation."""
        result = await self._session.execute(
            select(ChatMessageModel)
            .where(
                ChatMessageModel.user_id == user_id,
                ChatMessageModel.room_id == room_id,
                ChatMessageModel.role == "system",
            )
            .order_by(ChatMessageModel.created_at.desc())
            .limit(SAFETY_LOOKUP_WINDOW)
        )
        return next((m for m in result.scalars() if m.is_safety_message), None)

    async def get_safety_message(self, message_id: str, user_id: str) -> Optional[ChatMessageModel]:
        """A specific safety message, only if it belongs to user_id."""
        message = await self.get_by_id(message_id)
        if message is None or message.user_id != user_id or not message.is_safety_message:
            return None
        return message
