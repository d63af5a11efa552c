"""
Role and permission management plus permission checks.

This is the only service that mutates roles, permissions and their
assignments. Every mutating or company-scoped call takes the acting user id
first and re-validates access through AccessValidator; nothing is cached, so
a check always reflects the current grants.
"""

from collections.abc import Iterable

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.application.services.access_validator import AccessValidator
from bizmanager.domain.entities.rbac import (ModuleActionView, PermissionView,
                                             RoleWithPermissions)
from bizmanager.domain.enums import ReservedRole
from bizmanager.domain.exceptions import (ConflictException,
                                          PermissionDeniedError,
                                          ResourceNotFoundException,
                                          ValidationException)
from bizmanager.infrastructure.persistence.models.permission import Permission
from bizmanager.infrastructure.persistence.models.role import Role, UserRole
from bizmanager.infrastructure.persistence.repositories.catalog_repo import \
    ModuleActionRepository
from bizmanager.infrastructure.persistence.repositories.company_repo import \
    CompanyUserRepository
from bizmanager.infrastructure.persistence.repositories.permission_repo import \
    PermissionRepository
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def to_permission_view(permission: Permission) -> PermissionView:
    return PermissionView(
        id=permission.id,
        company_id=permission.company_id,
        name=permission.name,
        description=permission.description,
    )


def _unique(ids: Iterable[int]) -> list[int]:
    """De-duplicate while keeping first-seen order"""
    return list(dict.fromkeys(ids))


class AuthorizationService:
    def __init__(
        self,
        validator: AccessValidator,
        role_repo: RoleRepository,
        permission_repo: PermissionRepository,
        module_action_repo: ModuleActionRepository,
        company_user_repo: CompanyUserRepository,
        config: AuthorizationConfig,
    ) -> None:
        self.validator = validator
        self.role_repo = role_repo
        self.permission_repo = permission_repo
        self.module_action_repo = module_action_repo
        self.company_user_repo = company_user_repo
        self.config = config

    # Roles

    async def create_role(
        self,
        actor_id: int | None,
        company_id: int,
        name: str,
        description: str | None = None,
    ) -> Role:
        """
        Create a role in a company.

        Raises:
            ValidationException: Empty name
            PermissionDeniedError: Reserved name or no company access
            ResourceNotFoundException: Unknown company
            ConflictException: Name already used in the company
        """
        name = name.strip()
        if not name:
            raise ValidationException("Role name is required", field="name")
        if name.upper() == ReservedRole.ROOT.value:
            raise PermissionDeniedError("The ROOT role name is reserved", resource="role")

        actor = self.validator.resolve_actor(actor_id)
        await self.validator.require_company_access(actor, company_id)
        await self.validator.require_company_permission(actor, company_id, "role", "create")

        if await self.role_repo.get_by_name_and_company(name, company_id):
            raise ConflictException(f"Role '{name}' already exists", resource_type="role")

        role = await self.role_repo.create(
            Role(company_id=company_id, name=name, description=description)
        )
        logger.info(f"Role {role.id} created in company {company_id} by user {actor}")
        return role

    async def get_role(self, actor_id: int | None, role_id: int) -> RoleWithPermissions:
        role = await self.validator.resolve_role_access(actor_id, role_id)
        permissions = await self.permission_repo.get_permissions_for_role(role.id)
        return RoleWithPermissions(
            id=role.id,
            company_id=role.company_id,
            name=role.name,
            description=role.description,
            permissions=[to_permission_view(p) for p in permissions],
        )

    async def list_roles(
        self, actor_id: int | None, company_id: int, skip: int = 0, limit: int | None = None
    ) -> list[Role]:
        await self.validator.require_company_access(actor_id, company_id)
        return await self.role_repo.get_by_company(
            company_id, skip=skip, limit=limit or self.config.default_page_size
        )

    async def assign_role(self, actor_id: int | None, user_id: int, role_id: int) -> UserRole:
        """
        Grant a company role to a member of that company.

        Raises:
            PermissionDeniedError: ROOT role, cross-company use, no access, or
                no role:update grant in the role's company
            ResourceNotFoundException: Unknown role or non-member user
            ConflictException: User already holds the role
        """
        actor = self.validator.resolve_actor(actor_id)
        membership = await self.validator.resolve_role_assignment(actor, user_id, role_id)

        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise ResourceNotFoundException("Role", role_id)
        if role.is_root:
            raise PermissionDeniedError("The ROOT role cannot be assigned", resource="role")
        await self.validator.require_company_permission(actor, role.company_id, "role", "update")

        if await self.role_repo.get_user_role(user_id, role_id):
            raise ConflictException("User already has this role", resource_type="user_role")

        user_role = await self.role_repo.assign_role_to_user(
            user_id=user_id, role_id=role_id, company_user_id=membership.id
        )
        logger.info(f"Role {role_id} assigned to user {user_id} by user {actor}")
        return user_role

    async def revoke_role(self, actor_id: int | None, user_id: int, role_id: int) -> None:
        role = await self.validator.resolve_role_access(actor_id, role_id)
        if role.is_root:
            raise PermissionDeniedError("The ROOT role cannot be revoked here", resource="role")
        await self.validator.require_company_permission(
            actor_id, role.company_id, "role", "update"
        )

        if not await self.role_repo.remove_role_from_user(user_id, role_id):
            raise ResourceNotFoundException("UserRole", f"{user_id}:{role_id}")
        logger.info(f"Role {role_id} revoked from user {user_id}")

    # Permissions

    async def create_permission(
        self,
        actor_id: int | None,
        company_id: int,
        name: str,
        description: str | None,
        role_id: int,
        module_action_ids: Iterable[int] = (),
    ) -> Permission:
        """
        Create a company permission and grant it to one of the company's roles.

        The permission, its role grant and its module-action links are
        written in the caller's transaction.
        """
        name = name.strip()
        if not name:
            raise ValidationException("Permission name is required", field="name")

        actor = self.validator.resolve_actor(actor_id)
        await self.validator.require_company_access(actor, company_id)
        await self.validator.require_company_permission(actor, company_id, "role", "create")

        role = await self.role_repo.get_by_id(role_id)
        if role is None or role.company_id != company_id:
            raise ResourceNotFoundException("Role", role_id)

        if await self.permission_repo.get_by_name_and_company(name, company_id):
            raise ConflictException(
                f"Permission '{name}' already exists", resource_type="permission"
            )

        action_ids = await self._require_module_actions(module_action_ids)

        permission = await self.permission_repo.create(
            Permission(company_id=company_id, name=name, description=description)
        )
        await self.permission_repo.assign_permission_to_role(role.id, permission.id)
        await self.permission_repo.add_module_actions(permission.id, action_ids)

        logger.info(
            f"Permission {permission.id} created in company {company_id} "
            f"and granted to role {role.id}"
        )
        return permission

    async def list_permissions(
        self, actor_id: int | None, company_id: int, skip: int = 0, limit: int | None = None
    ) -> list[Permission]:
        await self.validator.require_company_access(actor_id, company_id)
        return await self.permission_repo.get_by_company(
            company_id, skip=skip, limit=limit or self.config.default_page_size
        )

    async def get_permissions_by_role(
        self, actor_id: int | None, role_id: int
    ) -> list[Permission]:
        role = await self.validator.resolve_role_access(actor_id, role_id)
        return await self.permission_repo.get_permissions_for_role(role.id)

    async def update_role_permissions(
        self, actor_id: int | None, role_id: int, permission_ids: Iterable[int]
    ) -> list[Permission]:
        """
        Replace a role's permission set.

        Duplicates in permission_ids collapse, so repeating a call with the
        same ids leaves the same set behind.
        """
        role = await self.validator.resolve_role_access(actor_id, role_id)
        if role.is_root:
            raise PermissionDeniedError(
                "ROOT permissions cannot be changed", resource="role", action="update"
            )
        await self.validator.require_company_permission(
            actor_id, role.company_id, "role", "update"
        )

        ids = _unique(permission_ids)
        permissions = await self.permission_repo.get_by_ids(ids)
        found = {p.id: p for p in permissions}
        for permission_id in ids:
            permission = found.get(permission_id)
            if permission is None:
                raise ResourceNotFoundException("Permission", permission_id)
            if permission.company_id != role.company_id:
                raise PermissionDeniedError(
                    "Permission belongs to a different company", resource="permission"
                )

        await self.permission_repo.clear_role_permissions(role.id)
        await self.permission_repo.assign_permissions_to_role(role.id, ids)
        logger.info(f"Role {role.id} permissions replaced ({len(ids)} permissions)")
        return await self.permission_repo.get_permissions_for_role(role.id)

    async def remove_permission(
        self, actor_id: int | None, role_id: int, permission_id: int
    ) -> None:
        role = await self.validator.resolve_role_access(actor_id, role_id)
        if role.is_root:
            raise PermissionDeniedError(
                "ROOT permissions cannot be changed", resource="role", action="update"
            )
        await self.validator.require_company_permission(
            actor_id, role.company_id, "role", "update"
        )
        if not await self.permission_repo.remove_permission_from_role(role.id, permission_id):
            raise ResourceNotFoundException("RolePermission", f"{role.id}:{permission_id}")
        logger.info(f"Permission {permission_id} removed from role {role.id}")

    async def get_user_permissions(
        self, actor_id: int | None, user_id: int, company_id: int
    ) -> list[Permission]:
        """Permissions a member holds in a company through their roles"""
        await self.validator.require_company_access(actor_id, company_id)
        if not await self.company_user_repo.exists(company_id, user_id):
            raise ResourceNotFoundException("CompanyUser", user_id)
        return await self.permission_repo.get_user_permissions(user_id, company_id)

    # Module actions

    async def list_module_actions(self) -> list[ModuleActionView]:
        return [
            self._to_module_action_view(action, module)
            for action, module in await self.module_action_repo.list_with_modules()
        ]

    async def get_permission_module_actions(
        self, actor_id: int | None, permission_id: int
    ) -> list[ModuleActionView]:
        permission = await self.validator.require_permission_access(actor_id, permission_id)
        return await self._module_action_views(permission.id)

    async def add_permission_module_action(
        self, actor_id: int | None, permission_id: int, module_action_id: int
    ) -> list[ModuleActionView]:
        permission = await self.validator.require_permission_access(
            actor_id, permission_id, modify=True
        )
        await self._require_module_actions([module_action_id])
        if await self.permission_repo.has_module_action(permission.id, module_action_id):
            raise ConflictException(
                "Module action already linked to this permission",
                resource_type="permission_module_action",
            )
        await self.permission_repo.add_module_actions(permission.id, [module_action_id])
        return await self._module_action_views(permission.id)

    async def update_permission_module_actions(
        self, actor_id: int | None, permission_id: int, module_action_ids: Iterable[int]
    ) -> list[ModuleActionView]:
        permission = await self.validator.require_permission_access(
            actor_id, permission_id, modify=True
        )
        action_ids = await self._require_module_actions(module_action_ids)
        await self.permission_repo.clear_module_actions(permission.id)
        await self.permission_repo.add_module_actions(permission.id, action_ids)
        logger.info(f"Permission {permission.id} module actions replaced")
        return await self._module_action_views(permission.id)

    # Decisions

    async def check_permission(
        self, user_id: int, module: str, action: str, company_id: int | None = None
    ) -> bool:
        """
        Does the user hold module:action through any granted role?

        Raises:
            ResourceNotFoundException: If module:action is not in the catalog
        """
        module_action = await self.module_action_repo.get_by_module_and_name(module, action)
        if module_action is None:
            raise ResourceNotFoundException("ModuleAction", f"{module}:{action}")
        return await self.permission_repo.user_has_module_action(
            user_id, module_action.id, company_id
        )

    async def require_permission(
        self, user_id: int, module: str, action: str, company_id: int | None = None
    ) -> None:
        """Raise exception if user lacks permission"""
        if not await self.check_permission(user_id, module, action, company_id):
            raise PermissionDeniedError(
                f"Missing permission {module}:{action}", resource=module, action=action
            )

    # Helpers

    async def _require_module_actions(self, module_action_ids: Iterable[int]) -> list[int]:
        ids = _unique(module_action_ids)
        found = {a.id for a in await self.module_action_repo.get_by_ids(ids)}
        for action_id in ids:
            if action_id not in found:
                raise ResourceNotFoundException("ModuleAction", action_id)
        return ids

    async def _module_action_views(self, permission_id: int) -> list[ModuleActionView]:
        ids = await self.permission_repo.get_module_action_ids(permission_id)
        return [
            self._to_module_action_view(action, module)
            for action, module in await self.module_action_repo.list_with_modules(ids)
        ]

    @staticmethod
    def _to_module_action_view(action, module: str) -> ModuleActionView:
        return ModuleActionView(
            id=action.id,
            module_id=action.module_id,
            module=module,
            name=action.name,
            description=action.description,
        )
