from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.infrastructure.persistence.models.company import Company, CompanyUser
from bizmanager.infrastructure.persistence.repositories.base import BaseRepository


class CompanyRepository(BaseRepository[Company]):
    """Repository for Company rows. Contact columns hold ciphertext."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Company)

    async def get_by_identifier(self, identifier: str) -> Company | None:
        result = await self.db.execute(
            select(Company).where(Company.identifier == identifier)
        )
        return result.scalar_one_or_none()

    async def get_owned_by_name(self, user_id: int, name: str) -> Company | None:
        """Company with this name whose main owner is user_id"""
        result = await self.db.execute(
            select(Company)
            .join(CompanyUser, CompanyUser.company_id == Company.id)
            .where(
                CompanyUser.user_id == user_id,
                CompanyUser.is_main.is_(True),
                func.lower(Company.name) == name.lower(),
            )
        )
        return result.scalars().first()

    async def list_for_user(
        self, user_id: int, skip: int = 0, limit: int = 100
    ) -> list[Company]:
        """Companies the user is a member of"""
        result = await self.db.execute(
            select(Company)
            .join(CompanyUser, CompanyUser.company_id == Company.id)
            .where(CompanyUser.user_id == user_id)
            .order_by(Company.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_by_id(self, company_id: int) -> int:
        result = await self.db.execute(delete(Company).where(Company.id == company_id))
        return result.rowcount


class CompanyUserRepository(BaseRepository[CompanyUser]):
    """Repository for company memberships"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CompanyUser)

    async def get_membership(self, company_id: int, user_id: int) -> CompanyUser | None:
        result = await self.db.execute(
            select(CompanyUser).where(
                CompanyUser.company_id == company_id,
                CompanyUser.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def exists(self, company_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(
                select(CompanyUser.id)
                .where(
                    CompanyUser.company_id == company_id,
                    CompanyUser.user_id == user_id,
                )
                .exists()
            )
        )
        return bool(result.scalar())

    async def get_by_company(
        self, company_id: int, skip: int = 0, limit: int = 100
    ) -> list[CompanyUser]:
        result = await self.db.execute(
            select(CompanyUser)
            .where(CompanyUser.company_id == company_id)
            .order_by(CompanyUser.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_by_company(self, company_id: int) -> int:
        result = await self.db.execute(
            delete(CompanyUser).where(CompanyUser.company_id == company_id)
        )
        return result.rowcount
