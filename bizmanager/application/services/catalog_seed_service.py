"""
Permission catalog seeding.

Sets up the global data every deployment needs:
- Default modules and their CRUD actions
- Global catalog permissions linked to each module's actions
- The ROOT role holding every catalog permission

Seeding is idempotent: existing rows are left alone and only missing rows
are added, so it is safe to run on every start.
"""
from typing import TypedDict

from bizmanager.domain.enums import ReservedRole
from bizmanager.domain.exceptions import ResourceNotFoundException
from bizmanager.infrastructure.persistence.models.catalog import Module, ModuleAction
from bizmanager.infrastructure.persistence.models.permission import Permission
from bizmanager.infrastructure.persistence.models.role import Role, UserRole
from bizmanager.infrastructure.persistence.repositories.catalog_repo import (
    ModuleActionRepository, ModuleRepository)
from bizmanager.infrastructure.persistence.repositories.permission_repo import \
    PermissionRepository
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.infrastructure.persistence.repositories.user_repo import UserRepository
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# (name, description)
DEFAULT_MODULES = [
    ("company", "Company management module"),
    ("user", "User management module"),
    ("role", "Role management module"),
]

# (module, action, description)
DEFAULT_MODULE_ACTIONS = [
    ("company", "create", "Create company"),
    ("company", "read", "View company"),
    ("company", "update", "Update company"),
    ("company", "delete", "Delete company"),
    ("user", "create", "Create user"),
    ("user", "read", "View user"),
    ("user", "update", "Update user"),
    ("user", "delete", "Delete user"),
    ("role", "create", "Create role"),
    ("role", "read", "View role"),
    ("role", "update", "Update role"),
    ("role", "delete", "Delete role"),
]

# (permission, description, module whose actions it grants)
CATALOG_PERMISSIONS = [
    ("manage_companies", "Full access to company management", "company"),
    ("manage_users", "Full access to user management", "user"),
    ("manage_roles", "Full access to role management", "role"),
]

ROOT_ROLE_DESCRIPTION = "System ROOT user with full access"


class SeedResult(TypedDict):
    """Rows added by a seeding run"""

    modules_created: int
    module_actions_created: int
    permissions_created: int
    module_action_links_created: int
    root_role_created: bool
    root_grants_created: int


class CatalogSeedService:
    def __init__(
        self,
        module_repo: ModuleRepository,
        module_action_repo: ModuleActionRepository,
        permission_repo: PermissionRepository,
        role_repo: RoleRepository,
        user_repo: UserRepository,
    ) -> None:
        self.module_repo = module_repo
        self.module_action_repo = module_action_repo
        self.permission_repo = permission_repo
        self.role_repo = role_repo
        self.user_repo = user_repo

    async def seed(self) -> SeedResult:
        result: SeedResult = {
            "modules_created": 0,
            "module_actions_created": 0,
            "permissions_created": 0,
            "module_action_links_created": 0,
            "root_role_created": False,
            "root_grants_created": 0,
        }

        modules: dict[str, Module] = {}
        for name, description in DEFAULT_MODULES:
            module = await self.module_repo.get_by_name(name)
            if module is None:
                module = await self.module_repo.create(Module(name=name, description=description))
                result["modules_created"] += 1
            modules[name] = module

        actions_by_module: dict[str, list[int]] = {name: [] for name in modules}
        for module_name, action, description in DEFAULT_MODULE_ACTIONS:
            module = modules[module_name]
            module_action = await self.module_action_repo.get_by_module_id_and_name(
                module.id, action
            )
            if module_action is None:
                module_action = await self.module_action_repo.create(
                    ModuleAction(module_id=module.id, name=action, description=description)
                )
                result["module_actions_created"] += 1
            actions_by_module[module_name].append(module_action.id)

        permission_ids: list[int] = []
        for name, description, module_name in CATALOG_PERMISSIONS:
            permission = await self.permission_repo.get_by_name_and_company(name, None)
            if permission is None:
                permission = await self.permission_repo.create(
                    Permission(company_id=None, name=name, description=description)
                )
                result["permissions_created"] += 1
            permission_ids.append(permission.id)

            linked = set(await self.permission_repo.get_module_action_ids(permission.id))
            missing = [a for a in actions_by_module[module_name] if a not in linked]
            await self.permission_repo.add_module_actions(permission.id, missing)
            result["module_action_links_created"] += len(missing)

        root = await self.role_repo.get_root_role()
        if root is None:
            root = await self.role_repo.create(
                Role(
                    company_id=None,
                    name=ReservedRole.ROOT.value,
                    description=ROOT_ROLE_DESCRIPTION,
                )
            )
            result["root_role_created"] = True

        granted = {p.id for p in await self.permission_repo.get_permissions_for_role(root.id)}
        missing_grants = [p for p in permission_ids if p not in granted]
        await self.permission_repo.assign_permissions_to_role(root.id, missing_grants)
        result["root_grants_created"] = len(missing_grants)

        logger.info(f"Permission catalog seeded: {result}")
        return result

    async def bootstrap_root_user(self, user_id: int) -> UserRole:
        """
        Grant ROOT to a user outside the normal assignment path.

        Intended for operators setting up the first super-user; repeated
        calls return the existing grant.
        """
        if await self.user_repo.get_by_id(user_id) is None:
            raise ResourceNotFoundException("User", user_id)
        root = await self.role_repo.get_root_role()
        if root is None:
            raise ResourceNotFoundException("Role", ReservedRole.ROOT.value)

        existing = await self.role_repo.get_user_role(user_id, root.id)
        if existing is not None:
            return existing

        user_role = await self.role_repo.assign_role_to_user(
            user_id=user_id, role_id=root.id, company_user_id=None
        )
        logger.warning(f"ROOT role granted to user {user_id}")
        return user_role
