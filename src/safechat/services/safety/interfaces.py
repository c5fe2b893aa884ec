"""
Safety Pipeline Boundary Interfaces

Narrow contracts for the collaborators the escalation orchestrator
depends on: message/flag persistence and teacher notification.

ARCHITECTURE: The orchestrator only sees these interfaces. The
SQLAlchemy store and the SMTP dispatcher implement them in
infrastructure; tests use in-memory fakes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from safechat.domain.enums.concern import ConcernCategory, ConcernLevel
from safechat.domain.models.concern_models import ChatTurn, Flag, Profile


class PersistenceError(Exception):
    """A store read or write failed."""

    def __init__(self, operation: str, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.original_error = original_error


class ChatStore(ABC):
    """Persistence boundary for chat messages, profiles and flags."""

    @abstractmethod
    async def get_message_anchor(self, message_id: str) -> Optional[tuple[datetime, Optional[str]]]:
        """
        Look up the message being checked.

        Returns:
            (created_at, chatbot_id) or None if the message is unknown
        """
        pass

    @abstractmethod
    async def fetch_prior_messages(
        self,
        room_id: str,
        student_id: str,
        chatbot_id: Optional[str],
        before_timestamp: datetime,
        limit: int,
    ) -> list[ChatTurn]:
        """
        Fetch up to `limit` messages strictly older than before_timestamp
        in the same (room, student, chatbot) conversation.

        Returns:
            Turns in chronological order (oldest first)
        """
        pass

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]:
        """Look up a profile; None if it does not exist."""
        pass

    @abstractmethod
    async def insert_flag(self, flag: Flag) -> str:
        """
        Persist a Flag.

        Returns:
            The new flag_id

        Raises:
            PersistenceError: If the insert failed
        """
        pass

    @abstractmethod
    async def insert_system_message(
        self,
        room_id: str,
        student_id: str,
        content: str,
        metadata: dict[str, Any],
        chatbot_id: Optional[str] = None,
    ) -> str:
        """
        Persist a system-role chat message.

        Returns:
            The new message_id

        Raises:
            PersistenceError: If the insert failed
        """
        pass


class AlertDispatcher(ABC):
    """Outbound teacher notification boundary. Best effort."""

    @abstractmethod
    async def send_teacher_alert(
        self,
        teacher_email: str,
        student_name: str,
        room_name: str,
        concern_type: ConcernCategory,
        concern_level: ConcernLevel,
        excerpt: str,
        review_url: str,
    ) -> bool:
        """
        Send an alert to the room's teacher.

        Returns:
            True if the alert was handed to the transport
        """
        pass
