"""
Flagged Message Database Model

Persisted escalation records for teacher review.

SAFETY-CRITICAL: Rows are the audit trail of automated
escalations. The pipeline only inserts; status changes belong
to the review workflow.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from safechat.infrastructure.database.connection import Base


class FlaggedMessageModel(Base):
    """
    Flag table ORM model.

    Table: flagged_messages
    """

    __tablename__ = "flagged_messages"
    __table_args__ = (
        Index("ix_flagged_messages_teacher_status", "teacher_id", "status"),
    )

    flag_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    message_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("chat_messages.message_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    teacher_id: Mapped[str] = mapped_column(String(64), nullable=False)
    room_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    concern_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        doc="self_harm, bullying, abuse, depression, family_issues"
    )
    concern_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Verified severity (0-5)"
    )
    analysis_explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="pending, reviewing, resolved, false_positive"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<FlaggedMessageModel(flag_id={self.flag_id}, status={self.status})>"
