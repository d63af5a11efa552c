"""
Company membership management.

Registers new users straight into a company (encrypted email/phone, email
hash for lookups, bcrypt password) and manages existing memberships.
"""

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.application.interfaces.services import IFieldCipher, IPasswordHasher
from bizmanager.application.services.access_validator import AccessValidator
from bizmanager.domain.entities.company import CompanyMember
from bizmanager.domain.exceptions import (ConflictException,
                                          PermissionDeniedError,
                                          ResourceNotFoundException,
                                          ValidationException)
from bizmanager.infrastructure.persistence.models.company import CompanyUser
from bizmanager.infrastructure.persistence.models.user import User
from bizmanager.infrastructure.persistence.repositories.company_repo import (
    CompanyRepository, CompanyUserRepository)
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.infrastructure.persistence.repositories.user_repo import UserRepository
from bizmanager.infrastructure.security.password import hash_email, normalize_email
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


async def create_user_account(
    user_repo: UserRepository,
    cipher: IFieldCipher,
    password_hasher: IPasswordHasher,
    email: str,
    password: str,
    phone: str | None = None,
) -> User:
    """
    Validate and insert a user row.

    Raises:
        ValidationException: Malformed email or short password
        ConflictException: A user with this email already exists
    """
    email = normalize_email(email)
    if "@" not in email:
        raise ValidationException("A valid email is required", field="email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationException(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )

    email_hash = hash_email(email)
    if await user_repo.get_by_email_hash(email_hash):
        raise ConflictException("A user with this email already exists", resource_type="user")

    return await user_repo.create(
        User(
            email=cipher.encrypt(email),
            email_hash=email_hash,
            password=password_hasher.hash(password),
            phone=cipher.encrypt(phone) if phone else None,
        )
    )


class CompanyUserService:
    def __init__(
        self,
        validator: AccessValidator,
        company_repo: CompanyRepository,
        company_user_repo: CompanyUserRepository,
        user_repo: UserRepository,
        role_repo: RoleRepository,
        cipher: IFieldCipher,
        password_hasher: IPasswordHasher,
        config: AuthorizationConfig,
    ) -> None:
        self.validator = validator
        self.company_repo = company_repo
        self.company_user_repo = company_user_repo
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.cipher = cipher
        self.password_hasher = password_hasher
        self.config = config

    async def register_company_user(
        self,
        actor_id: int | None,
        company_id: int,
        email: str,
        password: str,
        phone: str | None = None,
    ) -> CompanyMember:
        """
        Create a user and add them to the company.

        Raises:
            ValidationException: Malformed email or short password
            ConflictException: A user with this email already exists
        """
        await self._require_manager(actor_id, company_id, action="create")

        user = await create_user_account(
            self.user_repo, self.cipher, self.password_hasher, email, password, phone
        )
        membership = await self.company_user_repo.create(
            CompanyUser(company_id=company_id, user_id=user.id, is_main=False)
        )
        logger.info(f"User {user.id} registered into company {company_id}")
        return self._to_member(membership, user)

    async def add_existing_user(
        self, actor_id: int | None, company_id: int, user_id: int
    ) -> CompanyMember:
        await self._require_manager(actor_id, company_id, action="create")

        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)
        if await self.company_user_repo.exists(company_id, user_id):
            raise ConflictException(
                "User is already a member of this company", resource_type="company_user"
            )

        membership = await self.company_user_repo.create(
            CompanyUser(company_id=company_id, user_id=user_id, is_main=False)
        )
        logger.info(f"User {user_id} added to company {company_id}")
        return self._to_member(membership, user)

    async def list_company_users(
        self, actor_id: int | None, company_id: int, skip: int = 0, limit: int | None = None
    ) -> list[CompanyMember]:
        await self._require_manager(actor_id, company_id)
        memberships = await self.company_user_repo.get_by_company(
            company_id, skip=skip, limit=limit or self.config.default_page_size
        )
        users = {
            u.id: u
            for u in await self.user_repo.get_by_ids([m.user_id for m in memberships])
        }
        return [self._to_member(m, users[m.user_id]) for m in memberships]

    async def remove_company_user(
        self, actor_id: int | None, company_id: int, user_id: int
    ) -> None:
        """Remove a membership and the member's grants on the company's roles"""
        await self._require_manager(actor_id, company_id, action="delete")

        membership = await self.company_user_repo.get_membership(company_id, user_id)
        if membership is None:
            raise ResourceNotFoundException("CompanyUser", user_id)
        if membership.is_main:
            raise PermissionDeniedError(
                "The company owner cannot be removed", resource="company_user", action="delete"
            )

        role_ids = await self.role_repo.get_ids_by_company(company_id)
        revoked = await self.role_repo.delete_user_roles_for_membership(user_id, role_ids)
        await self.company_user_repo.delete(membership)
        logger.info(
            f"User {user_id} removed from company {company_id} ({revoked} role grants revoked)"
        )

    async def _require_manager(
        self, actor_id: int | None, company_id: int, action: str | None = None
    ) -> None:
        """
        Root passes. Other actors must be members, and changes need
        user:<action> through a role of this company.
        """
        actor = self.validator.resolve_actor(actor_id)
        if await self.company_repo.get_by_id(company_id) is None:
            raise ResourceNotFoundException("Company", company_id)
        if not await self.validator.resolve_root_access(actor):
            await self.validator.require_company_access(actor, company_id)
            if action:
                await self.validator.require_company_permission(actor, company_id, "user", action)

    def _to_member(self, membership: CompanyUser, user: User) -> CompanyMember:
        return CompanyMember(
            company_user_id=membership.id,
            company_id=membership.company_id,
            user_id=user.id,
            email=self.cipher.decrypt(user.email),
            phone=self.cipher.decrypt(user.phone) if user.phone else None,
            is_main=membership.is_main,
        )
