"""
Flag Repository

Insert-only access to flagged_messages from the pipeline, plus
reads for the review dashboard and tests.
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safechat.domain.models.concern_models import Flag
from safechat.infrastructure.database.models.flagged_message_model import FlaggedMessageModel
from safechat.infrastructure.database.repositories.base import BaseRepository


class FlagRepository(BaseRepository[FlaggedMessageModel]):
    """
    Repository for Flag records.

    Usage:
        repo = FlagRepository(session)
        row = await repo.create_from_flag(flag)
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(FlaggedMessageModel, session)

    async def create_from_flag(self, flag: Flag) -> FlaggedMessageModel:
        """Insert a domain Flag."""
        row = FlaggedMessageModel(
            message_id=flag.message_id,
            student_id=flag.student_id,
            teacher_id=flag.teacher_id,
            room_id=flag.room_id,
            concern_type=flag.concern_type.value,
            concern_level=int(flag.concern_level),
            analysis_explanation=flag.explanation,
            status=flag.status.value,
            created_at=flag.created_at,
        )
        if flag.flag_id:
            row.flag_id = flag.flag_id
        return await self.create(row)

    async def list_for_message(self, message_id: str) -> Sequence[FlaggedMessageModel]:
        """All flags for one message, oldest first."""
        result = await self._session.execute(
            select(FlaggedMessageModel)
            .where(FlaggedMessageModel.message_id == message_id)
            .order_by(FlaggedMessageModel.created_at.asc())
        )
        return result.scalars().all()
