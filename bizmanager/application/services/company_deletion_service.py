"""Ordered removal of a company and everything scoped to it."""

from bizmanager.application.services.access_validator import AccessValidator
from bizmanager.domain.entities.company import CompanyDeletionCounts
from bizmanager.domain.exceptions import (PermissionDeniedError,
                                          ResourceNotFoundException)
from bizmanager.infrastructure.persistence.repositories.company_repo import (
    CompanyRepository, CompanyUserRepository)
from bizmanager.infrastructure.persistence.repositories.permission_repo import \
    PermissionRepository
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class CompanyDeletionService:
    """
    Deletes a company in dependency order:

    1. company users
    2. user roles of the company's roles
    3. role permissions of the company's roles
    4. the company's roles
    5. module-action links of the company's permissions
    6. the company's permissions
    7. the company

    Foreign keys have no ON DELETE cascade, so a missed dependant aborts the
    delete and the caller's transaction rolls everything back.
    """

    def __init__(
        self,
        validator: AccessValidator,
        company_repo: CompanyRepository,
        company_user_repo: CompanyUserRepository,
        role_repo: RoleRepository,
        permission_repo: PermissionRepository,
    ) -> None:
        self.validator = validator
        self.company_repo = company_repo
        self.company_user_repo = company_user_repo
        self.role_repo = role_repo
        self.permission_repo = permission_repo

    async def delete_company(self, actor_id: int | None, company_id: int) -> CompanyDeletionCounts:
        """
        Raises:
            ResourceNotFoundException: Unknown company
            PermissionDeniedError: Actor is neither root nor the main owner
        """
        actor = self.validator.resolve_actor(actor_id)
        if await self.company_repo.get_by_id(company_id) is None:
            raise ResourceNotFoundException("Company", company_id)

        if not await self.validator.resolve_root_access(actor):
            membership = await self.company_user_repo.get_membership(company_id, actor)
            if membership is None or not membership.is_main:
                raise PermissionDeniedError(
                    "Only the company owner can delete it", resource="company", action="delete"
                )

        role_ids = await self.role_repo.get_ids_by_company(company_id)
        permission_ids = await self.permission_repo.get_ids_by_company(company_id)

        counts = CompanyDeletionCounts(
            company_users=await self.company_user_repo.delete_by_company(company_id),
            user_roles=await self.role_repo.delete_user_roles_for_roles(role_ids),
            role_permissions=await self.permission_repo.delete_role_permissions_for_roles(
                role_ids
            ),
            roles=await self.role_repo.delete_by_company(company_id),
            permission_module_actions=(
                await self.permission_repo.delete_module_actions_for_permissions(permission_ids)
            ),
            permissions=await self.permission_repo.delete_by_ids(permission_ids),
            companies=await self.company_repo.delete_by_id(company_id),
        )
        logger.info(f"Company {company_id} deleted by user {actor}: {counts.as_dict()}")
        return counts
