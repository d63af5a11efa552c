from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.domain.enums import ReservedRole
from bizmanager.infrastructure.persistence.models.catalog import Module, ModuleAction
from bizmanager.infrastructure.persistence.models.permission import (
    Permission, PermissionModuleAction, RolePermission)
from bizmanager.infrastructure.persistence.models.role import Role, UserRole
from bizmanager.infrastructure.persistence.repositories.base import BaseRepository


class PermissionRepository(BaseRepository[Permission]):
    """
    Permissions, their role grants and their module-action links.

    Also hosts the permission check query, since it is a read over the
    tables this repository owns.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, Permission)

    async def get_by_name_and_company(
        self, name: str, company_id: int | None
    ) -> Permission | None:
        """Get permission by name within a company, or in the global catalog"""
        company_filter = (
            Permission.company_id.is_(None)
            if company_id is None
            else Permission.company_id == company_id
        )
        result = await self.db.execute(
            select(Permission).where(Permission.name == name, company_filter)
        )
        return result.scalar_one_or_none()

    async def get_by_ids(self, ids: list[int]) -> list[Permission]:
        if not ids:
            return []
        result = await self.db.execute(select(Permission).where(Permission.id.in_(ids)))
        return list(result.scalars().all())

    async def get_catalog(self) -> list[Permission]:
        """Global catalog permissions (company_id NULL)"""
        result = await self.db.execute(
            select(Permission).where(Permission.company_id.is_(None)).order_by(Permission.id)
        )
        return list(result.scalars().all())

    async def get_by_company(
        self, company_id: int, skip: int = 0, limit: int = 100
    ) -> list[Permission]:
        """Get all permissions for a company"""
        result = await self.db.execute(
            select(Permission)
            .where(Permission.company_id == company_id)
            .order_by(Permission.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_ids_by_company(self, company_id: int) -> list[int]:
        result = await self.db.execute(
            select(Permission.id).where(Permission.company_id == company_id)
        )
        return list(result.scalars().all())

    async def delete_by_ids(self, ids: list[int]) -> int:
        if not ids:
            return 0
        result = await self.db.execute(delete(Permission).where(Permission.id.in_(ids)))
        return result.rowcount

    # Role grants

    async def get_permissions_for_role(self, role_id: int) -> list[Permission]:
        """Get all permissions assigned to a role"""
        result = await self.db.execute(
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.id)
        )
        return list(result.scalars().all())

    async def assign_permission_to_role(
        self, role_id: int, permission_id: int
    ) -> RolePermission:
        role_permission = RolePermission(role_id=role_id, permission_id=permission_id)
        self.db.add(role_permission)
        await self.db.flush()
        return role_permission

    async def assign_permissions_to_role(
        self, role_id: int, permission_ids: list[int]
    ) -> list[RolePermission]:
        grants = [
            RolePermission(role_id=role_id, permission_id=permission_id)
            for permission_id in permission_ids
        ]
        return await self.create_many(grants)

    async def remove_permission_from_role(self, role_id: int, permission_id: int) -> bool:
        result = await self.db.execute(
            delete(RolePermission).where(
                RolePermission.role_id == role_id,
                RolePermission.permission_id == permission_id,
            )
        )
        return result.rowcount > 0

    async def clear_role_permissions(self, role_id: int) -> int:
        result = await self.db.execute(
            delete(RolePermission).where(RolePermission.role_id == role_id)
        )
        return result.rowcount

    async def delete_role_permissions_for_roles(self, role_ids: list[int]) -> int:
        if not role_ids:
            return 0
        result = await self.db.execute(
            delete(RolePermission).where(RolePermission.role_id.in_(role_ids))
        )
        return result.rowcount

    # Module-action links

    async def get_module_action_ids(self, permission_id: int) -> list[int]:
        result = await self.db.execute(
            select(PermissionModuleAction.module_action_id)
            .where(PermissionModuleAction.permission_id == permission_id)
            .order_by(PermissionModuleAction.module_action_id)
        )
        return list(result.scalars().all())

    async def get_module_action_links(
        self, permission_ids: list[int]
    ) -> dict[int, list[int]]:
        """permission id -> module action ids, for several permissions at once"""
        links: dict[int, list[int]] = {permission_id: [] for permission_id in permission_ids}
        if not permission_ids:
            return links
        result = await self.db.execute(
            select(PermissionModuleAction.permission_id, PermissionModuleAction.module_action_id)
            .where(PermissionModuleAction.permission_id.in_(permission_ids))
            .order_by(PermissionModuleAction.id)
        )
        for permission_id, module_action_id in result.all():
            links[permission_id].append(module_action_id)
        return links

    async def has_module_action(self, permission_id: int, module_action_id: int) -> bool:
        result = await self.db.execute(
            select(
                select(PermissionModuleAction.id)
                .where(
                    PermissionModuleAction.permission_id == permission_id,
                    PermissionModuleAction.module_action_id == module_action_id,
                )
                .exists()
            )
        )
        return bool(result.scalar())

    async def add_module_actions(
        self, permission_id: int, module_action_ids: list[int]
    ) -> list[PermissionModuleAction]:
        links = [
            PermissionModuleAction(permission_id=permission_id, module_action_id=action_id)
            for action_id in module_action_ids
        ]
        return await self.create_many(links)

    async def clear_module_actions(self, permission_id: int) -> int:
        result = await self.db.execute(
            delete(PermissionModuleAction).where(
                PermissionModuleAction.permission_id == permission_id
            )
        )
        return result.rowcount

    async def delete_module_actions_for_permissions(self, permission_ids: list[int]) -> int:
        if not permission_ids:
            return 0
        result = await self.db.execute(
            delete(PermissionModuleAction).where(
                PermissionModuleAction.permission_id.in_(permission_ids)
            )
        )
        return result.rowcount

    # Decisions

    def _grant_query(self, user_id: int, company_id: int | None):
        """UserRole -> RolePermission -> PermissionModuleAction rows for a user"""
        query = (
            select(UserRole.id)
            .join(RolePermission, RolePermission.role_id == UserRole.role_id)
            .join(
                PermissionModuleAction,
                PermissionModuleAction.permission_id == RolePermission.permission_id,
            )
            .where(UserRole.user_id == user_id)
        )
        if company_id is not None:
            query = query.join(Role, Role.id == UserRole.role_id).where(
                or_(
                    Role.company_id == company_id,
                    and_(Role.company_id.is_(None), Role.name == ReservedRole.ROOT.value),
                )
            )
        return query

    async def user_has_module_action(
        self, user_id: int, module_action_id: int, company_id: int | None = None
    ) -> bool:
        """
        Single EXISTS over UserRole -> RolePermission -> PermissionModuleAction.

        With company_id set, only grants on that company's roles or on the
        global ROOT role count.
        """
        query = self._grant_query(user_id, company_id).where(
            PermissionModuleAction.module_action_id == module_action_id
        )
        result = await self.db.execute(select(query.exists()))
        return bool(result.scalar())

    async def user_has_action(
        self, user_id: int, module: str, action: str, company_id: int | None = None
    ) -> bool:
        """Same check keyed by module and action names; unknown names are simply not held"""
        query = (
            self._grant_query(user_id, company_id)
            .join(ModuleAction, ModuleAction.id == PermissionModuleAction.module_action_id)
            .join(Module, Module.id == ModuleAction.module_id)
            .where(Module.name == module, ModuleAction.name == action)
        )
        result = await self.db.execute(select(query.exists()))
        return bool(result.scalar())

    async def get_user_permissions(
        self, user_id: int, company_id: int | None = None
    ) -> list[Permission]:
        """Distinct permissions reachable through the user's role grants"""
        query = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(UserRole, UserRole.role_id == RolePermission.role_id)
            .join(Role, Role.id == UserRole.role_id)
            .where(UserRole.user_id == user_id)
        )
        if company_id is not None:
            query = query.where(Role.company_id == company_id)
        result = await self.db.execute(query.distinct().order_by(Permission.id))
        return list(result.scalars().all())
