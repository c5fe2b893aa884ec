"""
Chat Message Database Model

Student, assistant and system messages. Safety advice is stored
here as role="system" with safety metadata.

SECURITY: content is written by minors. Never log it in full.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from safechat.infrastructure.database.connection import Base


class ChatMessageModel(Base):
    """
    Chat message table ORM model.

    Table: chat_messages

    chatbot_id is a real column (also mirrored in metadata as
    chatbotId) so context queries can filter on it portably.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("ix_chat_messages_context", "room_id", "user_id", "chatbot_id", "created_at"),
    )

    message_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    room_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        doc="Student whose conversation this message belongs to"
    )
    chatbot_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="user, assistant or system"
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    # "metadata" is reserved on declarative classes
    message_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB, "postgresql"),
        default=dict,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    @property
    def is_safety_message(self) -> bool:
        return self.role == "system" and bool((self.message_metadata or {}).get("isSystemSafetyResponse"))

    def __repr__(self) -> str:
        return f"<ChatMessageModel(message_id={self.message_id}, role={self.role})>"
