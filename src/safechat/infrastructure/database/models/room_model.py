"""
Room Database Model

A classroom owned by one teacher. Safety alerts for messages sent
in a room go to its teacher.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from safechat.infrastructure.database.connection import Base


class RoomModel(Base):
    """
    Room table ORM model.

    Table: rooms
    """

    __tablename__ = "rooms"

    room_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    room_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    teacher_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Owning teacher"
    )
    chatbot_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        doc="Default chatbot for the room"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<RoomModel(room_id={self.room_id})>"
