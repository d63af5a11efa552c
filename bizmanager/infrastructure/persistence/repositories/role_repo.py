from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.domain.enums import ReservedRole
from bizmanager.infrastructure.persistence.models.role import Role, UserRole
from bizmanager.infrastructure.persistence.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Roles and the user-role grants that reference them"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Role)

    async def get_by_name_and_company(self, name: str, company_id: int) -> Role | None:
        """Get role by name within a specific company"""
        result = await self.db.execute(
            select(Role).where(Role.name == name, Role.company_id == company_id)
        )
        return result.scalar_one_or_none()

    async def get_root_role(self) -> Role | None:
        """The single company-less ROOT role"""
        result = await self.db.execute(
            select(Role).where(Role.company_id.is_(None), Role.name == ReservedRole.ROOT.value)
        )
        return result.scalar_one_or_none()

    async def get_by_company(
        self, company_id: int, skip: int = 0, limit: int = 100
    ) -> list[Role]:
        """Get all roles for a company"""
        result = await self.db.execute(
            select(Role)
            .where(Role.company_id == company_id)
            .order_by(Role.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_ids_by_company(self, company_id: int) -> list[int]:
        result = await self.db.execute(select(Role.id).where(Role.company_id == company_id))
        return list(result.scalars().all())

    async def delete_by_company(self, company_id: int) -> int:
        result = await self.db.execute(delete(Role).where(Role.company_id == company_id))
        return result.rowcount

    # User-role grants

    async def get_user_role(self, user_id: int, role_id: int) -> UserRole | None:
        result = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def assign_role_to_user(
        self, user_id: int, role_id: int, company_user_id: int | None
    ) -> UserRole:
        user_role = UserRole(
            user_id=user_id, role_id=role_id, company_user_id=company_user_id
        )
        self.db.add(user_role)
        await self.db.flush()
        await self.db.refresh(user_role)
        return user_role

    async def remove_role_from_user(self, user_id: int, role_id: int) -> bool:
        result = await self.db.execute(
            delete(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.rowcount > 0

    async def is_root(self, user_id: int) -> bool:
        """True when the user holds the global ROOT role"""
        result = await self.db.execute(
            select(
                select(UserRole.id)
                .join(Role, Role.id == UserRole.role_id)
                .where(
                    UserRole.user_id == user_id,
                    Role.company_id.is_(None),
                    Role.name == ReservedRole.ROOT.value,
                )
                .exists()
            )
        )
        return bool(result.scalar())

    async def delete_user_roles_for_roles(self, role_ids: list[int]) -> int:
        if not role_ids:
            return 0
        result = await self.db.execute(delete(UserRole).where(UserRole.role_id.in_(role_ids)))
        return result.rowcount

    async def delete_user_roles_for_membership(
        self, user_id: int, role_ids: list[int]
    ) -> int:
        """Drop a member's grants on the given (company) roles"""
        if not role_ids:
            return 0
        result = await self.db.execute(
            delete(UserRole).where(
                UserRole.user_id == user_id, UserRole.role_id.in_(role_ids)
            )
        )
        return result.rowcount
