"""
Base Repository Pattern

Generic async data access shared by all repositories.
Implements the Repository pattern for clean separation between
the safety pipeline and SQL.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from safechat.infrastructure.database.connection import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Generic base repository with async operations.

    Usage:
        class ProfileRepository(BaseRepository[ProfileModel]):
            pass

        repo = ProfileRepository(ProfileModel, session)
        profile = await repo.get_by_id(user_id)
    """

    def __init__(self, model: Type[ModelT], session: AsyncSession) -> None:
        """
        Initialize repository with model class and session.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self._model = model
        self._session = session

    async def get_by_id(self, id: Any) -> Optional[ModelT]:
        """
        Get entity by primary key.

        Returns:
            Entity if found, None otherwise
        """
        return await self._session.get(self._model, id)

    async def create(self, entity: ModelT) -> ModelT:
        """
        Create a new entity.

        Args:
            entity: Entity instance to create

        Returns:
            Created entity with generated defaults populated
        """
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity

    async def count(self) -> int:
        """Count all entities."""
        result = await self._session.execute(
            select(func.count()).select_from(self._model)
        )
        return result.scalar_one()
