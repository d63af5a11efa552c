"""Company reads and updates, returning decrypted CompanyDetails."""

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.application.interfaces.services import IFieldCipher
from bizmanager.application.services.access_validator import AccessValidator
from bizmanager.domain.entities.company import CompanyDetails
from bizmanager.domain.exceptions import (ConflictException,
                                          ResourceNotFoundException,
                                          ValidationException)
from bizmanager.infrastructure.persistence.models.company import Company
from bizmanager.infrastructure.persistence.repositories.company_repo import \
    CompanyRepository
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

ENCRYPTED_FIELDS = ("email", "phone", "address")
PLAIN_FIELDS = ("name", "identifier", "logo")


def decrypt_company(company: Company, cipher: IFieldCipher) -> CompanyDetails:
    """Build a CompanyDetails from a row without touching the row itself"""
    return CompanyDetails(
        id=company.id,
        name=company.name,
        email=cipher.decrypt(company.email) if company.email else None,
        phone=cipher.decrypt(company.phone) if company.phone else None,
        address=cipher.decrypt(company.address) if company.address else None,
        identifier=company.identifier,
        logo=company.logo,
        created_at=company.created_at,
        updated_at=company.updated_at,
    )


class CompanyService:
    def __init__(
        self,
        validator: AccessValidator,
        company_repo: CompanyRepository,
        cipher: IFieldCipher,
        config: AuthorizationConfig,
    ) -> None:
        self.validator = validator
        self.company_repo = company_repo
        self.cipher = cipher
        self.config = config

    async def get_company(self, actor_id: int | None, company_id: int) -> CompanyDetails:
        company = await self._load_accessible(actor_id, company_id)
        return decrypt_company(company, self.cipher)

    async def list_companies(
        self, actor_id: int | None, skip: int = 0, limit: int | None = None
    ) -> list[CompanyDetails]:
        """Root sees every company; other actors see their memberships"""
        actor = self.validator.resolve_actor(actor_id)
        limit = limit or self.config.default_page_size
        if await self.validator.resolve_root_access(actor):
            companies = await self.company_repo.get_all(skip=skip, limit=limit)
        else:
            companies = await self.company_repo.list_for_user(actor, skip=skip, limit=limit)
        return [decrypt_company(c, self.cipher) for c in companies]

    async def update_company(
        self, actor_id: int | None, company_id: int, **changes: str | None
    ) -> CompanyDetails:
        """
        Apply changes to a company.

        Only keys in the plain/encrypted field lists are accepted; encrypted
        fields are re-encrypted before being written.
        """
        unknown = set(changes) - set(ENCRYPTED_FIELDS) - set(PLAIN_FIELDS)
        if unknown:
            raise ValidationException(f"Unknown company fields: {sorted(unknown)}")

        company = await self._load_accessible(actor_id, company_id, action="update")

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationException("Company name is required", field="name")
            company.name = name

        if "identifier" in changes and changes["identifier"] != company.identifier:
            identifier = changes["identifier"]
            if identifier and await self.company_repo.get_by_identifier(identifier):
                raise ConflictException(
                    "Company identifier already in use", resource_type="company"
                )
            company.identifier = identifier

        if "logo" in changes:
            company.logo = changes["logo"]

        for field in ENCRYPTED_FIELDS:
            if field in changes:
                value = changes[field]
                setattr(company, field, self.cipher.encrypt(value) if value else None)

        updated = await self.company_repo.update(company)
        logger.info(f"Company {company_id} updated ({', '.join(sorted(changes))})")
        return decrypt_company(updated, self.cipher)

    async def _load_accessible(
        self, actor_id: int | None, company_id: int, action: str | None = None
    ) -> Company:
        """Root passes; others need membership and, for writes, company:<action> here"""
        actor = self.validator.resolve_actor(actor_id)
        company = await self.company_repo.get_by_id(company_id)
        if company is None:
            raise ResourceNotFoundException("Company", company_id)
        if not await self.validator.resolve_root_access(actor):
            await self.validator.require_company_access(actor, company_id)
            if action:
                await self.validator.require_company_permission(
                    actor, company_id, "company", action
                )
        return company
