"""
Profile Database Model

Teachers and students. Only the fields the safety pipeline reads
are mapped here; account provisioning owns the rest.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from safechat.infrastructure.database.connection import Base


class ProfileModel(Base):
    """
    Profile table ORM model.

    Table: profiles
    """

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        doc="Auth user identifier"
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default="student",
        doc="Role (student, teacher)"
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(320),
        nullable=True,
        doc="Contact email (teachers receive safety alerts here)"
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        doc="Display name"
    )
    country_code: Mapped[Optional[str]] = mapped_column(
        String(8),
        nullable=True,
        doc="Country code used for helpline localization"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ProfileModel(user_id={self.user_id}, role={self.role})>"
