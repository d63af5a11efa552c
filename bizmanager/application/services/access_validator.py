"""
Access validation for company-scoped authorization.

The validator answers "may this actor touch this company / role /
permission" and never writes. Services call it before every mutation and
every company-scoped read.
"""

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.domain.exceptions import (AuthenticationException,
                                          PermissionDeniedError,
                                          ResourceNotFoundException)
from bizmanager.infrastructure.persistence.models.company import CompanyUser
from bizmanager.infrastructure.persistence.models.permission import Permission
from bizmanager.infrastructure.persistence.models.role import Role
from bizmanager.infrastructure.persistence.repositories.company_repo import (
    CompanyRepository, CompanyUserRepository)
from bizmanager.infrastructure.persistence.repositories.permission_repo import \
    PermissionRepository
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.shared.context import get_current_actor_id
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class AccessValidator:
    def __init__(
        self,
        company_repo: CompanyRepository,
        company_user_repo: CompanyUserRepository,
        role_repo: RoleRepository,
        permission_repo: PermissionRepository,
        config: AuthorizationConfig,
    ) -> None:
        self.company_repo = company_repo
        self.company_user_repo = company_user_repo
        self.role_repo = role_repo
        self.permission_repo = permission_repo
        self.config = config

    def resolve_actor(self, actor_id: int | None = None) -> int:
        """
        Resolve the acting user id.

        Falls back to the request context when no explicit id is passed.

        Raises:
            AuthenticationException: If no actor can be resolved
        """
        resolved = actor_id if actor_id is not None else get_current_actor_id()
        if resolved is None:
            raise AuthenticationException("Actor could not be resolved")
        return resolved

    async def resolve_company_access(self, actor_id: int | None, company_id: int) -> bool:
        """True iff the actor is a member of the company"""
        actor = self.resolve_actor(actor_id)
        return await self.company_user_repo.exists(company_id, actor)

    async def require_company_access(self, actor_id: int | None, company_id: int) -> CompanyUser:
        """
        Return the actor's membership in the company.

        Raises:
            ResourceNotFoundException: If the company does not exist
            PermissionDeniedError: If the actor is not a member
        """
        actor = self.resolve_actor(actor_id)
        if await self.company_repo.get_by_id(company_id) is None:
            raise ResourceNotFoundException("Company", company_id)

        membership = await self.company_user_repo.get_membership(company_id, actor)
        if membership is None:
            logger.warning(f"Actor {actor} denied access to company {company_id}")
            raise PermissionDeniedError(
                "No access to this company", resource="company", action="access"
            )
        return membership

    async def resolve_root_access(self, actor_id: int | None) -> bool:
        actor = self.resolve_actor(actor_id)
        return await self.role_repo.is_root(actor)

    async def require_root_access(self, actor_id: int | None) -> None:
        if not await self.resolve_root_access(actor_id):
            raise PermissionDeniedError("Root access required", resource="system", action="root")

    async def require_company_permission(
        self, actor_id: int | None, company_id: int, module: str, action: str
    ) -> None:
        """
        Require module:action through a role of this company or the ROOT role.

        Grants held in other companies never count here.
        """
        actor = self.resolve_actor(actor_id)
        if not await self.permission_repo.user_has_action(actor, module, action, company_id):
            logger.warning(f"Actor {actor} lacks {module}:{action} in company {company_id}")
            raise PermissionDeniedError(
                f"Missing permission {module}:{action}", resource=module, action=action
            )

    async def resolve_permission_ownership(self, permission_id: int) -> tuple[Permission, bool]:
        """
        Load a permission and report whether it is company scoped.

        When the second element is True the caller must check the actor's
        access to permission.company_id.
        """
        permission = await self.permission_repo.get_by_id(permission_id)
        if permission is None:
            raise ResourceNotFoundException("Permission", permission_id)
        return permission, permission.company_id is not None

    async def require_permission_access(
        self, actor_id: int | None, permission_id: int, modify: bool = False
    ) -> Permission:
        """
        Load a permission the actor may see (or change, when modify is set).

        Global catalog permissions are readable by any actor and writable only
        by root. Company permissions need membership of their company, and
        changing one also needs role:update there.
        """
        actor = self.resolve_actor(actor_id)
        permission, company_scoped = await self.resolve_permission_ownership(permission_id)
        if company_scoped:
            assert permission.company_id is not None
            if not await self.resolve_company_access(actor, permission.company_id):
                raise PermissionDeniedError(
                    "No access to this permission's company", resource="permission"
                )
            if modify:
                await self.require_company_permission(
                    actor, permission.company_id, "role", "update"
                )
        elif modify:
            await self.require_root_access(actor)
        return permission

    async def resolve_role_assignment(
        self, actor_id: int | None, user_id: int, role_id: int
    ) -> CompanyUser:
        """
        Validate that user_id may be granted role_id by the actor.

        Returns the target user's membership in the role's company.

        Raises:
            ResourceNotFoundException: Unknown role, or the user is not a
                member of the role's company
            PermissionDeniedError: ROOT role, company mismatch, or the actor
                has no access to the role's company
        """
        actor = self.resolve_actor(actor_id)
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise ResourceNotFoundException("Role", role_id)
        if role.is_root or role.company_id is None:
            raise PermissionDeniedError("The ROOT role cannot be assigned", resource="role")

        target = await self.company_user_repo.get_membership(role.company_id, user_id)
        if target is None:
            raise ResourceNotFoundException("CompanyUser", user_id)
        if target.company_id != role.company_id:
            raise PermissionDeniedError("Role belongs to a different company", resource="role")

        if not await self.resolve_company_access(actor, role.company_id):
            raise PermissionDeniedError(
                "No access to this role's company", resource="role", action="assign"
            )
        return target

    async def resolve_role_access(self, actor_id: int | None, role_id: int) -> Role:
        """Load a role the actor may act on; ROOT is visible to root only"""
        actor = self.resolve_actor(actor_id)
        role = await self.role_repo.get_by_id(role_id)
        if role is None:
            raise ResourceNotFoundException("Role", role_id)

        if role.company_id is None:
            await self.require_root_access(actor)
        elif not await self.resolve_company_access(actor, role.company_id):
            raise PermissionDeniedError("No access to this role's company", resource="role")
        return role
