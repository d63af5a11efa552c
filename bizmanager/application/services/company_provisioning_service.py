"""
Company provisioning for new tenants.

This service encapsulates the complete company creation workflow:
- Company record with encrypted contact fields
- Owning membership for the creating user
- ADMIN role holding a company copy of the whole permission catalog
- ADMIN grant for the creating user

Every step only flushes; the caller's transaction makes the whole workflow
all-or-nothing.
"""

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.application.interfaces.services import IFieldCipher
from bizmanager.application.services.company_service import decrypt_company
from bizmanager.domain.entities.company import ProvisioningResult
from bizmanager.domain.exceptions import (ConflictException,
                                          ResourceNotFoundException,
                                          ValidationException)
from bizmanager.infrastructure.persistence.models.company import Company, CompanyUser
from bizmanager.infrastructure.persistence.models.permission import Permission
from bizmanager.infrastructure.persistence.models.role import Role
from bizmanager.infrastructure.persistence.repositories.company_repo import (
    CompanyRepository, CompanyUserRepository)
from bizmanager.infrastructure.persistence.repositories.permission_repo import \
    PermissionRepository
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.infrastructure.persistence.repositories.user_repo import UserRepository
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class CompanyProvisioningService:
    def __init__(
        self,
        company_repo: CompanyRepository,
        company_user_repo: CompanyUserRepository,
        user_repo: UserRepository,
        role_repo: RoleRepository,
        permission_repo: PermissionRepository,
        cipher: IFieldCipher,
        config: AuthorizationConfig,
    ) -> None:
        self.company_repo = company_repo
        self.company_user_repo = company_user_repo
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.permission_repo = permission_repo
        self.cipher = cipher
        self.config = config

    async def provision_company(
        self,
        user_id: int,
        name: str,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        identifier: str | None = None,
        logo: str | None = None,
    ) -> ProvisioningResult:
        """
        Create a company owned by user_id with a fully-granted ADMIN role.

        Raises:
            ValidationException: Empty company name
            ResourceNotFoundException: Unknown creating user
            ConflictException: The user already owns a company with this
                name, or the identifier is taken
        """
        name = name.strip()
        if not name:
            raise ValidationException("Company name is required", field="name")

        if await self.user_repo.get_by_id(user_id) is None:
            raise ResourceNotFoundException("User", user_id)
        if await self.company_repo.get_owned_by_name(user_id, name):
            raise ConflictException(
                f"You already own a company named '{name}'", resource_type="company"
            )
        if identifier and await self.company_repo.get_by_identifier(identifier):
            raise ConflictException("Company identifier already in use", resource_type="company")

        company = await self.company_repo.create(
            Company(
                name=name,
                email=self.cipher.encrypt(email) if email else None,
                phone=self.cipher.encrypt(phone) if phone else None,
                address=self.cipher.encrypt(address) if address else None,
                identifier=identifier,
                logo=logo,
            )
        )

        membership = await self.company_user_repo.create(
            CompanyUser(company_id=company.id, user_id=user_id, is_main=True)
        )

        admin_role = await self.role_repo.create(
            Role(
                company_id=company.id,
                name=self.config.admin_role_name,
                description=self.config.admin_role_description,
            )
        )

        permission_ids = await self._copy_catalog(company.id, admin_role.id)

        user_role = await self.role_repo.assign_role_to_user(
            user_id=user_id, role_id=admin_role.id, company_user_id=membership.id
        )

        logger.info(
            f"Company {company.id} provisioned for user {user_id} "
            f"with {len(permission_ids)} admin permissions"
        )
        return ProvisioningResult(
            company=decrypt_company(company, self.cipher),
            company_user_id=membership.id,
            admin_role_id=admin_role.id,
            user_role_id=user_role.id,
            permission_ids=permission_ids,
        )

    async def _copy_catalog(self, company_id: int, role_id: int) -> list[int]:
        """Copy every global permission into the company and grant it to the role"""
        catalog = await self.permission_repo.get_catalog()
        if not catalog:
            logger.warning(f"Permission catalog is empty; company {company_id} ADMIN has no grants")
            return []

        copies = await self.permission_repo.create_many(
            [
                Permission(company_id=company_id, name=p.name, description=p.description)
                for p in catalog
            ]
        )
        permission_ids = [copy.id for copy in copies]
        await self.permission_repo.assign_permissions_to_role(role_id, permission_ids)

        if self.config.copy_module_actions_on_provision:
            links = await self.permission_repo.get_module_action_links([p.id for p in catalog])
            for source, copy in zip(catalog, copies, strict=True):
                await self.permission_repo.add_module_actions(copy.id, links[source.id])

        return permission_ids
