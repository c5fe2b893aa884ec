"""
Profile Repository

Read access to teacher and student profiles.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from safechat.infrastructure.database.models.profile_model import ProfileModel
from safechat.infrastructure.database.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[ProfileModel]):
    """Profile lookups by user ID."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(ProfileModel, session)
