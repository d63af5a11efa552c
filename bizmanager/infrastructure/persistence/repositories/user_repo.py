from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.infrastructure.persistence.models.user import User
from bizmanager.infrastructure.persistence.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email_hash(self, email_hash: str) -> User | None:
        """Look a user up by the hash of their normalised email"""
        result = await self.db.execute(select(User).where(User.email_hash == email_hash))
        return result.scalar_one_or_none()

    async def get_by_ids(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        return list(result.scalars().all())
